# State package
from .store import StateCollection, StateStore
