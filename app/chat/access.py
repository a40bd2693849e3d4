"""
Access resolution and the login state machine.

This module turns a submitted password into an access level, resolves the
chosen username into an identity, and drives the one-time admin bootstrap.

Services:
    AccessResolver: Password -> AccessGrant; username -> IdentityResolution
    LoginFlow: Phase-tracking wrapper used by the presentation layer

Login phases:
    password -> username -> active
    password -> username -> admin_setup -> active   (first admin login only)

Password resolution order:
    1. Exact match against the master passphrase grants PUBLIC
    2. Exact match against a private room's password grants ROOM, scoped
       to that room (public rooms are not entered this way)
    3. Anything else fails with INVALID_CREDENTIAL

Passwords are compared as plaintext equality, matching observed behaviour;
see DESIGN.md for the open question on hashed credentials.

Usage:
    from chat.access import LoginFlow

    flow = LoginFlow(store)
    result = flow.submit_password("Password from HMray")
    result = flow.submit_username("alice")
    if flow.phase == LoginPhase.ADMIN_SETUP:
        result = flow.submit_admin_password("secret1")
    if result.success:
        engine.login(
            result.data.identity,
            result.data.grant.level,
            result.data.grant.restricted_room_id,
        )
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.helpers import generate_id
from core.services import BaseService, ServiceResult

from chat.constants import (
    ADMIN_DEFAULTS,
    IDENTITY_CONFIG,
    LOGIN_CONFIG,
    ErrorCode,
)
from chat.types import (
    AccessGrant,
    AccessLevel,
    AdminConfig,
    Identity,
    IdentityResolution,
    LoginPhase,
    PresenceStatus,
)

if TYPE_CHECKING:
    from chat.store import SessionStore


def is_admin_username(username: str) -> bool:
    """Whether username is the reserved admin name (case-insensitive)."""
    return username.strip().lower() == settings.CHAT_ADMIN_USERNAME.lower()


def pick_identity_color() -> str:
    """Pick a presentation color for a newly minted identity."""
    return random.choice(IDENTITY_CONFIG.COLOR_PALETTE)


class AccessResolver(BaseService):
    """
    Resolves credentials and usernames against the session store.

    Methods:
        resolve_access: Password -> AccessGrant
        resolve_identity: Username -> IdentityResolution (or setup required)
        complete_admin_setup: Write AdminConfig and mint the admin identity
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def resolve_access(self, password: str) -> ServiceResult[AccessGrant]:
        """
        Resolve a submitted password into an access grant.

        Args:
            password: Password as typed; compared exactly

        Returns:
            ServiceResult with AccessGrant

        Error codes:
            INVALID_CREDENTIAL: Matches neither the master passphrase nor
                any private room password
        """
        if password == settings.CHAT_MASTER_PASSPHRASE:
            self.get_logger().info("Master passphrase accepted")
            return ServiceResult.success(AccessGrant(level=AccessLevel.PUBLIC))

        for room in self.store.load_rooms():
            if room.password == password:
                if not room.is_private:
                    # Public rooms are not password-gated for entry this way
                    break
                self.get_logger().info(f"Room password accepted for room {room.id}")
                return ServiceResult.success(
                    AccessGrant(level=AccessLevel.ROOM, restricted_room_id=room.id)
                )

        return self.reject("Invalid password", ErrorCode.INVALID_CREDENTIAL)

    def resolve_identity(
        self,
        username: str,
        grant: AccessGrant,
        password: str,
    ) -> ServiceResult[IdentityResolution]:
        """
        Resolve a chosen username into an active identity.

        Args:
            username: Username as typed (trimmed before use)
            grant: Access grant from the password phase
            password: Password captured in the password phase; checked
                against the stored admin credential for the admin username

        Returns:
            ServiceResult with IdentityResolution

        Error codes:
            USERNAME_TOO_SHORT: Fewer than 2 characters after trimming
            ADMIN_SETUP_REQUIRED: Admin username chosen before bootstrap
            INVALID_ADMIN_CREDENTIALS: Admin username with a wrong password
            USERNAME_IN_USE: Name taken by a present identity with no saved
                identity to restore
        """
        username = username.strip()
        if len(username) < LOGIN_CONFIG.MIN_USERNAME_LENGTH:
            return self.reject(
                f"Username must be at least {LOGIN_CONFIG.MIN_USERNAME_LENGTH} characters",
                ErrorCode.USERNAME_TOO_SHORT,
            )

        is_admin = is_admin_username(username)
        if is_admin:
            admin_config = self.store.load_admin_config()
            if admin_config is None:
                self.get_logger().info("Admin username chosen before bootstrap")
                return ServiceResult.failure(
                    "Admin setup required",
                    error_code=ErrorCode.ADMIN_SETUP_REQUIRED,
                )
            if admin_config.admin_password != password:
                return self.reject(
                    "Invalid admin credentials",
                    ErrorCode.INVALID_ADMIN_CREDENTIALS,
                    log_level=logging.WARNING,
                )
            grant = AccessGrant(level=AccessLevel.ADMIN)

        now = timezone.now()

        saved = self.store.load_saved_identity(username)
        if saved is not None:
            identity = replace(
                saved,
                joined_at=now,
                last_seen=now,
                status=PresenceStatus.ONLINE,
                is_admin=saved.is_admin or is_admin,
            )
            self._activate(identity)
            self.get_logger().info(f"Restored identity {identity.id} ({identity.username})")
            return ServiceResult.success(
                IdentityResolution(identity=identity, grant=grant, restored=True)
            )

        present = self.store.load_users()
        if any(user.username_key == username.lower() for user in present):
            return self.reject("Username already in use", ErrorCode.USERNAME_IN_USE)

        identity = Identity(
            id=generate_id(),
            username=username,
            color=pick_identity_color(),
            joined_at=now,
            last_seen=now,
            is_admin=is_admin,
            status=PresenceStatus.ONLINE,
        )
        self._activate(identity)
        self.get_logger().info(f"Created identity {identity.id} ({identity.username})")
        return ServiceResult.success(IdentityResolution(identity=identity, grant=grant))

    def complete_admin_setup(
        self,
        admin_password: str,
    ) -> ServiceResult[IdentityResolution]:
        """
        Perform the one-time admin bootstrap.

        Writes AdminConfig (which gates every later admin login) and mints
        the admin identity with admin access.

        Error codes:
            ADMIN_PASSWORD_TOO_SHORT: Fewer than 6 characters after trimming
            ADMIN_ALREADY_CONFIGURED: Bootstrap has already happened
        """
        admin_password = admin_password.strip()
        if len(admin_password) < LOGIN_CONFIG.MIN_ADMIN_PASSWORD_LENGTH:
            return self.reject(
                f"Admin password must be at least "
                f"{LOGIN_CONFIG.MIN_ADMIN_PASSWORD_LENGTH} characters",
                ErrorCode.ADMIN_PASSWORD_TOO_SHORT,
            )

        if self.store.load_admin_config() is not None:
            return self.reject(
                "Admin is already configured",
                ErrorCode.ADMIN_ALREADY_CONFIGURED,
                log_level=logging.WARNING,
            )

        self.store.save_admin_config(
            AdminConfig(
                admin_password=admin_password,
                default_retention_hours=ADMIN_DEFAULTS.DEFAULT_RETENTION_HOURS,
                allow_user_room_creation=ADMIN_DEFAULTS.ALLOW_USER_ROOM_CREATION,
                max_rooms_per_user=ADMIN_DEFAULTS.MAX_ROOMS_PER_USER,
                welcome_message=ADMIN_DEFAULTS.WELCOME_MESSAGE,
            )
        )

        now = timezone.now()
        identity = Identity(
            id=generate_id(),
            username=settings.CHAT_ADMIN_USERNAME,
            color=IDENTITY_CONFIG.ADMIN_COLOR,
            joined_at=now,
            last_seen=now,
            is_admin=True,
            status=PresenceStatus.ONLINE,
        )
        self._activate(identity)
        self.get_logger().info(f"Admin bootstrap completed; admin identity {identity.id}")
        return ServiceResult.success(
            IdentityResolution(
                identity=identity,
                grant=AccessGrant(level=AccessLevel.ADMIN),
            )
        )

    def _activate(self, identity: Identity) -> None:
        """Record identity as present, current and saved."""
        users = [
            user
            for user in self.store.load_users()
            if user.username_key != identity.username_key and user.id != identity.id
        ]
        users.append(identity)
        self.store.save_users(users)
        self.store.save_current_identity(identity)
        self.store.save_saved_identity(identity.username, identity)


class LoginFlow(BaseService):
    """
    Login state machine for one login attempt.

    Attributes:
        phase: Current LoginPhase
        grant: AccessGrant captured by the password phase
        resolution: IdentityResolution once phase is ACTIVE

    Each submit_* method only runs in its own phase; out-of-phase calls
    fail with INVALID_PHASE. A failed submission leaves the phase unchanged
    so the caller can redisplay and retry.
    """

    def __init__(self, store: SessionStore):
        self.resolver = AccessResolver(store)
        self.phase: str = LoginPhase.PASSWORD
        self.grant: AccessGrant | None = None
        self.resolution: IdentityResolution | None = None
        self._password: str | None = None

    def _require_phase(self, phase: str) -> ServiceResult | None:
        if self.phase != phase:
            return self.reject(
                f"Expected phase {phase}, current phase is {self.phase}",
                ErrorCode.INVALID_PHASE,
            )
        return None

    def submit_password(self, password: str) -> ServiceResult[AccessGrant]:
        """Password phase: resolve access and advance to the username phase."""
        invalid = self._require_phase(LoginPhase.PASSWORD)
        if invalid is not None:
            return invalid

        result = self.resolver.resolve_access(password)
        if result.success:
            self.grant = result.data
            self._password = password
            self.phase = LoginPhase.USERNAME
        return result

    def submit_username(self, username: str) -> ServiceResult[IdentityResolution]:
        """
        Username phase: resolve the identity.

        Choosing the admin username before bootstrap moves the flow to the
        ADMIN_SETUP phase and returns the ADMIN_SETUP_REQUIRED failure.
        """
        invalid = self._require_phase(LoginPhase.USERNAME)
        if invalid is not None:
            return invalid

        result = self.resolver.resolve_identity(username, self.grant, self._password)
        if result.success:
            self._finish(result.data)
        elif result.error_code == ErrorCode.ADMIN_SETUP_REQUIRED:
            self.phase = LoginPhase.ADMIN_SETUP
        return result

    def submit_admin_password(self, admin_password: str) -> ServiceResult[IdentityResolution]:
        """Admin setup phase: bootstrap AdminConfig and the admin identity."""
        invalid = self._require_phase(LoginPhase.ADMIN_SETUP)
        if invalid is not None:
            return invalid

        result = self.resolver.complete_admin_setup(admin_password)
        if result.success:
            self._finish(result.data)
        return result

    def _finish(self, resolution: IdentityResolution) -> None:
        self.resolution = resolution
        self.grant = resolution.grant
        self._password = None
        self.phase = LoginPhase.ACTIVE
