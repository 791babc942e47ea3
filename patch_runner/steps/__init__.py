from .step_10_single_instance import SingleInstanceStep
from .step_15_confirm_overrides import ConfirmOverridesStep
from .step_18_load_launcher_data import LoadLauncherDataStep
from .step_20_lockfile import LockfileStep
from .step_30_network import NetworkStep
from .step_40_fetch_package import FetchPackageStep
from .step_50_resolve_manifest import ResolveManifestStep
from .step_60_cleanup_previous import CleanupPreviousStep
from .step_70_launch import LaunchStep

__all__ = [
    "SingleInstanceStep",
    "ConfirmOverridesStep",
    "LoadLauncherDataStep",
    "LockfileStep",
    "NetworkStep",
    "FetchPackageStep",
    "ResolveManifestStep",
    "CleanupPreviousStep",
    "LaunchStep",
]
