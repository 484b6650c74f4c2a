# Services package
from .install_service import InstallOutcome, InstallService
from .sync_service import SyncService
