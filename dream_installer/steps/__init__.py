from .step_10_preflight import PreflightStep
from .step_20_secrets import SecretsStep
from .step_30_system_packages import SystemPackagesStep
from .step_40_container_engine import ContainerEngineStep
from .step_50_build_image import BuildImageStep
from .step_60_compose_launch import ComposeLaunchStep
from .step_70_service_registration import ServiceRegistrationStep
from .step_80_verification import VerificationStep
from .step_85_validate_keys import ValidateApiKeysStep
from .step_88_kiosk import KioskSetupStep
from .step_90_summary import SummaryStep

__all__ = [
    "PreflightStep",
    "SecretsStep",
    "SystemPackagesStep",
    "ContainerEngineStep",
    "BuildImageStep",
    "ComposeLaunchStep",
    "ServiceRegistrationStep",
    "VerificationStep",
    "ValidateApiKeysStep",
    "KioskSetupStep",
    "SummaryStep",
]
