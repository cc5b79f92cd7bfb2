"""Unit conversion helpers shared across the hydraulic-design domain."""

FT_TO_METRES = 0.3048
METRES_TO_FEET: float = 1 / FT_TO_METRES
IN_TO_MM = 25.4
MM_TO_IN: float = 1 / IN_TO_MM
SQFT_TO_SQM: float = FT_TO_METRES**2
SQM_TO_SQFT: float = 1 / SQFT_TO_SQM
CFS_TO_CMS = 0.028316846592
CMS_TO_CFS: float = 1 / CFS_TO_CMS
GPM_PER_CFS = 448.831
GPM_TO_LPS = 0.0630901964
LPS_TO_GPM: float = 1 / GPM_TO_LPS
PSI_TO_KPA = 6.894757
KPA_TO_PSI: float = 1 / PSI_TO_KPA
PSI_PER_FT_OF_WATER = 0.433


def feet_to_metres(value: float) -> float:
    """Convert feet into metres."""
    return value * FT_TO_METRES


def metres_to_feet(value: float) -> float:
    """Convert metres into feet."""
    return value * METRES_TO_FEET


def cfs_to_cms(value: float) -> float:
    """Convert cubic feet per second into cubic metres per second."""
    return value * CFS_TO_CMS


def cms_to_cfs(value: float) -> float:
    """Convert cubic metres per second into cubic feet per second."""
    return value * CMS_TO_CFS


def gpm_to_cfs(value: float) -> float:
    """Convert US gallons per minute into cubic feet per second."""
    return value / GPM_PER_CFS


def gpm_to_litres_per_second(value: float) -> float:
    return value * GPM_TO_LPS


def litres_per_second_to_gpm(value: float) -> float:
    return value * LPS_TO_GPM


def psi_to_kpa(value: float) -> float:
    """Convert pounds per square inch into kilopascals."""
    return value * PSI_TO_KPA


def kpa_to_psi(value: float) -> float:
    """Convert kilopascals into pounds per square inch."""
    return value * KPA_TO_PSI


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32.0) * 5.0 / 9.0


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9.0 / 5.0 + 32.0
