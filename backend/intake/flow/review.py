"""Completion/review stage.

Terminal pseudo-section. Re-checks every required section against the
freshest entity and either lists what is still missing or picks the
activation path to hand off to.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from intake.flow.context import MembershipContext
from intake.flow.sections import get_section
from intake.flow.state import ActivationTarget, SectionKey
from intake.schemas.member import Member

DASHBOARD_HREF = "/account"

_CTA = {
    ActivationTarget.CLUB: ("Activate Club Membership", "/upgrade/club/plan"),
    ActivationTarget.COMMUNITY: (
        "Activate Community Membership",
        "/checkout?purpose=community",
    ),
}


@dataclass(frozen=True)
class MissingSection:
    """A required section the entity does not satisfy yet."""

    key: SectionKey
    title: str


@dataclass(frozen=True)
class ReviewOutcome:
    """What the review stage shows.

    Attributes:
        missing: Required sections still unsatisfied, in sequence order.
        activation_target: Billing path to hand off to, or None for the
            generic dashboard exit.
        cta_label: Activation button label (None without a target).
        cta_href: Activation link (None without a target).
        description: Copy shown once everything is complete.
    """

    missing: tuple[MissingSection, ...]
    activation_target: ActivationTarget | None
    cta_label: str | None
    cta_href: str | None
    description: str
    dashboard_href: str = DASHBOARD_HREF

    @property
    def complete(self) -> bool:
        return not self.missing

    @property
    def first_missing(self) -> SectionKey | None:
        return self.missing[0].key if self.missing else None

    @property
    def message(self) -> str:
        if self.complete:
            return self.description
        titles = ", ".join(m.title for m in self.missing)
        return f"Almost there. Finish {titles} to complete setup."


def activation_target(
    context: MembershipContext,
    *,
    club_upgrade: bool = False,
) -> ActivationTarget | None:
    """Choose the activation path for a completed intake.

    Args:
        context: Current membership context.
        club_upgrade: The session was opened through a club upgrade link.

    Returns:
        CLUB when club (or academy) is wanted, COMMUNITY when community
        membership is not paid up, otherwise None.
    """
    if context.wants_club or club_upgrade:
        return ActivationTarget.CLUB
    if not context.community_active:
        return ActivationTarget.COMMUNITY
    return None


def _description(target: ActivationTarget | None, context: MembershipContext) -> str:
    if target == ActivationTarget.CLUB:
        if context.community_active:
            return "You're almost set. Activate your Club membership to unlock Club benefits."
        return "You're almost set. Activate Community + Club to unlock full access."
    if target == ActivationTarget.COMMUNITY:
        return "You're almost set. Activate your Community membership to unlock full access."
    return (
        "Your onboarding details are saved. Your dashboard will guide you to "
        "activation or Academy programs when you're ready."
    )


def evaluate_review(
    sequence: Sequence[SectionKey],
    member: Member,
    context: MembershipContext,
    *,
    club_upgrade: bool = False,
) -> ReviewOutcome:
    """Re-evaluate completion for the review stage.

    Args:
        sequence: Current step sequence.
        member: Freshest member entity.
        context: Membership context derived from that entity.
        club_upgrade: The session was opened through a club upgrade link.

    Returns:
        ReviewOutcome describing missing sections and the activation path.
    """
    missing = []
    for key in sequence:
        if key == SectionKey.REVIEW:
            continue
        section = get_section(key)
        if section.required and not section.is_satisfied(member):
            missing.append(MissingSection(key=key, title=section.title))

    target = activation_target(context, club_upgrade=club_upgrade)
    label, href = _CTA.get(target, (None, None)) if target else (None, None)
    return ReviewOutcome(
        missing=tuple(missing),
        activation_target=target,
        cta_label=label,
        cta_href=href,
        description=_description(target, context),
    )
