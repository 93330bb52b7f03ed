"""Resolve who is calling and what they may touch.

Raw grant rows are turned into a ``Principal`` once per request; business
logic only ever asks the principal, never the rows.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from flask import current_app

from ..errors import Forbidden, NotAuthenticated, NotFound
from ..extensions import db
from ..models.grant import AdminGrant, GRANT_ACTIVE
from ..models.organization import Organization
from ..models.program import Program
from ..models.user import User


@dataclass(frozen=True)
class Applicant:
    pass


@dataclass(frozen=True)
class Reviewer:
    program_id: int


@dataclass(frozen=True)
class OrgAdmin:
    org_id: int


@dataclass(frozen=True)
class CoalitionManager:
    coalition_id: int


@dataclass(frozen=True)
class SuperAdmin:
    pass


Role = Union[Applicant, Reviewer, OrgAdmin, CoalitionManager, SuperAdmin]

_SCOPE_ROLES = {
    "org": OrgAdmin,
    "coalition": CoalitionManager,
    "program": Reviewer,
}


@dataclass(frozen=True)
class Principal:
    user_id: int
    roles: Tuple[Role, ...]

    @property
    def is_superadmin(self) -> bool:
        return any(isinstance(r, SuperAdmin) for r in self.roles)

    def is_org_admin(self, org_id) -> bool:
        return org_id is not None and OrgAdmin(org_id) in self.roles

    def is_coalition_manager(self, coalition_id) -> bool:
        return coalition_id is not None and CoalitionManager(coalition_id) in self.roles


def resolve_principal(user_id: Optional[int]) -> Principal:
    """Build the principal for ``user_id`` from its user row and active grants."""
    if user_id is None:
        raise NotAuthenticated()
    user = db.session.get(User, user_id)
    if user is None:
        raise NotAuthenticated()

    roles = []
    if user.role == current_app.config.get("SUPERADMIN_ROLE", "superadmin"):
        roles.append(SuperAdmin())

    grants = AdminGrant.query.filter_by(user_id=user_id, status=GRANT_ACTIVE).all()
    for g in grants:
        role_cls = _SCOPE_ROLES.get(g.scope_type)
        if role_cls is None:
            current_app.logger.warning('Ignoring grant %s with unknown scope type %r', g.id, g.scope_type)
            continue
        roles.append(role_cls(g.scope_id))

    if not roles:
        roles.append(Applicant())
    return Principal(user_id=user_id, roles=tuple(roles))


def authorize_scope(principal: Principal, organization_id, coalition_id=None, allow_coalition=True):
    """Raise Forbidden unless the principal may administer the given scope."""
    if principal.is_superadmin:
        return
    if principal.is_org_admin(organization_id):
        return
    if allow_coalition and principal.is_coalition_manager(coalition_id):
        return
    current_app.logger.warning(
        'Denied user %s for org=%s coalition=%s', principal.user_id, organization_id, coalition_id
    )
    raise Forbidden()


def resolve_program_org(program_id):
    """Return ``(program, organization_id)`` or raise NotFound."""
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFound(f"Program {program_id} not found")
    org = db.session.get(Organization, program.organization_id)
    if org is None:
        raise NotFound(f"Organization for program {program_id} not found")
    return program, org.id


def program_coalition_id(program, organization_id):
    """Coalition that owns the program: its own, else its organization's."""
    if program.coalition_id is not None:
        return program.coalition_id
    org = db.session.get(Organization, organization_id)
    return org.coalition_id if org else None
