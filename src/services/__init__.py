from src.services import (
    gamification_service,
    response_parser,
    scan_service,
    verification_service,
)


__all__ = [
    "gamification_service",
    "response_parser",
    "scan_service",
    "verification_service",
]
