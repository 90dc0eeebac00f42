"""Resolution of caller roles and of the actions the roles may perform."""

import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable

from jsonpath_ng import parse

from authentication.interface import AuthTuple
from models.config import AccessRule, Action, JsonPathOperator, JwtRoleRule

logger = logging.getLogger(__name__)

UserRoles = set[str]

# every caller has this role, anonymous ones included
EVERYONE_ROLE = "*"


class RoleResolutionError(Exception):
    """Roles can not be resolved from the authentication data."""


class RolesResolver(ABC):  # pylint: disable=too-few-public-methods
    """Strategy turning a caller identity into roles."""

    @abstractmethod
    async def resolve_roles(self, auth: AuthTuple) -> UserRoles:
        """Return roles of the caller, without the everyone role."""


class NoopRolesResolver(RolesResolver):  # pylint: disable=too-few-public-methods
    """Callers have no roles."""

    async def resolve_roles(self, auth: AuthTuple) -> UserRoles:
        """Return an empty set of roles."""
        _ = auth
        return set()


def token_claims(token: str) -> dict[str, Any]:
    """Read the payload of a JWT.

    The signature is not checked here, it was verified when the caller
    was authenticated.

    Raises:
        RoleResolutionError: the token is not a JWT with a JSON object payload.
    """
    try:
        _, payload, _ = token.split(".")
    except ValueError as e:
        raise RoleResolutionError("Token is not a JWT") from e

    try:
        padded = payload + "=" * (-len(payload) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError) as e:
        raise RoleResolutionError("Token payload can not be decoded") from e

    if not isinstance(claims, dict):
        raise RoleResolutionError("Token payload is not a JSON object")
    return claims


def _match_regex(rule: JwtRoleRule, values: list[Any]) -> bool:
    pattern = rule.compiled_regex
    return pattern is not None and any(
        isinstance(value, str) and pattern.search(value) is not None
        for value in values
    )


# operator evaluation on the list of values found by the rule's JSONPath
_OPERATORS: dict[JsonPathOperator, Callable[[JwtRoleRule, list[Any]], bool]] = {
    JsonPathOperator.EQUALS: lambda rule, values: values == rule.value,
    JsonPathOperator.CONTAINS: lambda rule, values: rule.value in values,
    JsonPathOperator.IN: lambda rule, values: values in rule.value,
    JsonPathOperator.MATCH: _match_regex,
}


def rule_matches(rule: JwtRoleRule, claims: dict[str, Any]) -> bool:
    """Check if the role rule applies to the token claims."""
    values = [found.value for found in parse(rule.jsonpath).find(claims)]
    return _OPERATORS[rule.operator](rule, values) != rule.negate


class JwtRolesResolver(RolesResolver):  # pylint: disable=too-few-public-methods
    """Roles granted by JSONPath rules evaluated on the caller's token claims."""

    def __init__(self, role_rules: list[JwtRoleRule]):
        """Initialize the resolver with role rules."""
        self.role_rules = role_rules

    async def resolve_roles(self, auth: AuthTuple) -> UserRoles:
        """Collect roles of all rules that match the token claims."""
        if auth.anonymous:
            return set()

        claims = token_claims(auth.token)
        roles: UserRoles = set()
        for rule in self.role_rules:
            if rule_matches(rule, claims):
                roles.update(rule.roles)
        return roles


class AccessResolver(ABC):
    """Strategy deciding which actions the roles may perform."""

    @abstractmethod
    def get_actions(self, user_roles: UserRoles) -> set[Action]:
        """Return every action allowed to the roles."""

    def check_access(self, action: Action, user_roles: UserRoles) -> bool:
        """Check if the roles may perform the action."""
        allowed = action in self.get_actions(user_roles)
        logger.debug(
            "Action '%s' %s for roles %s",
            action.value,
            "allowed" if allowed else "denied",
            sorted(user_roles),
        )
        return allowed


class DevelopmentAccessResolver(AccessResolver):
    """Every caller may perform every action, changing settings included.

    Only used together with the noop authentication module.
    """

    def get_actions(self, user_roles: UserRoles) -> set[Action]:
        """Return all actions."""
        _ = user_roles
        return set(Action)


class RuleBasedAccessResolver(AccessResolver):
    """Actions granted to roles by access rules.

    A role with the `admin` action may perform every action. Without any
    rules nothing is allowed, so settings stay closed when rules are missing.
    """

    def __init__(self, access_rules: list[AccessRule]):
        """Index the access rules by role.

        Raises:
            ValueError: a rule combines `admin` with other actions.
        """
        self._actions_by_role: dict[str, set[Action]] = defaultdict(set)
        for rule in access_rules:
            if Action.ADMIN in rule.actions and len(rule.actions) > 1:
                raise ValueError(
                    "Access rule with 'admin' action cannot have other actions"
                )
            self._actions_by_role[rule.role].update(rule.actions)

        admin_roles = [
            role
            for role, granted in self._actions_by_role.items()
            if Action.ADMIN in granted
        ]
        if not admin_roles:
            logger.warning("No role is allowed to change Home Assistant settings")

    def get_actions(self, user_roles: UserRoles) -> set[Action]:
        """Return actions granted to any of the roles."""
        actions: set[Action] = set()
        for role in user_roles:
            actions.update(self._actions_by_role.get(role, set()))
        if Action.ADMIN in actions:
            return set(Action)
        return actions
