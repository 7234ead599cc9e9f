"""Provider abstraction layer.

Exports:
    MemberProvider interface and adapters
    Factory functions for provider instances
"""

from intake.providers.factory import (
    get_member_provider,
    reset_member_provider,
    set_member_provider,
)
from intake.providers.members import (
    HTTPMemberProvider,
    MemberProvider,
    MockMemberProvider,
)

__all__ = [
    # Interface and adapters
    "MemberProvider",
    "HTTPMemberProvider",
    "MockMemberProvider",
    # Factory
    "get_member_provider",
    "set_member_provider",
    "reset_member_provider",
]
