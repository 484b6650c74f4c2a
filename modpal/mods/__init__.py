# Mods package
from .common import CommonModData, compute_common_mod_data, is_mod_compatible
from .local_mod import LocalMod, LocalModData, Manifest, ModKind, RunnableManifest
from .remote_mod import ModDownload, RemoteMod, RemoteModData
