from propfind.core.config import settings


def isDebugMode() -> bool:
    return settings.MODE == "debug"


def isProductionMode() -> bool:
    return settings.MODE == "production"


def canEchoCodes() -> bool:
    """Verification codes may only be echoed back outside production."""
    return settings.DEBUG_ECHO_CODES and not isProductionMode()
