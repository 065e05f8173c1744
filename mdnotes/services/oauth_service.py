"""OAuth account linking.

Turns a provider profile into a local user. The code-for-profile exchange
with the provider (Google, GitHub) is an external collaborator behind the
``OAuthProvider`` protocol; everything after that lives here:

1. a known (provider, provider_id) pair logs into its linked user;
2. otherwise the profile email (or a synthesized noreply address) is
   matched against existing users and the account is linked;
3. otherwise a new password-less user is created and linked.
"""

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, ValidationError
from ..models import User
from ..repositories import UserRepository
from .auth_service import USERNAME_MAX_LENGTH

SUPPORTED_PROVIDERS = ("google", "github")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthProfile:
    """Provider-neutral view of the identity returned by an OAuth provider."""
    provider_id: str
    email: Optional[str] = None
    username: Optional[str] = None   # provider login, e.g. the GitHub handle
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class OAuthProvider(Protocol):
    """Exchanges an authorization code for a normalized profile.

    Implementations raise AuthenticationError when the provider rejects the code.
    """

    name: str

    def fetch_profile(self, code: str) -> OAuthProfile:
        ...


@dataclass
class OAuthLoginResult:
    user: User
    is_new: bool


def synthesize_email(provider: str, profile: OAuthProfile) -> str:
    """Deterministic noreply address for providers that hide the user's email."""
    login = profile.username or profile.provider_id
    return f"{profile.provider_id}+{login}@users.noreply.{provider}.com".lower()


def _username_base(profile: OAuthProfile, email: str) -> str:
    for candidate in (profile.username, profile.name, email.split("@", 1)[0]):
        base = re.sub(r"\s+", "", (candidate or "")).lower()
        if base:
            return base
    return "user"


def unique_username(repo: UserRepository, base: str) -> str:
    """*base*, or *base* followed by the first free numeric suffix (1, 2, ...)."""
    base = base[:USERNAME_MAX_LENGTH]
    username = base
    counter = 1
    while repo.username_taken(username):
        suffix = str(counter)
        username = base[:USERNAME_MAX_LENGTH - len(suffix)] + suffix
        counter += 1
    return username


def login_with_oauth(db: Session, provider: str, profile: OAuthProfile) -> OAuthLoginResult:
    """Resolve *profile* to a local user, creating or linking as needed.

    Raises:
        ValidationError: unsupported provider or empty provider id.
        AuthenticationError: the linked user has been deleted.
    """
    provider = (provider or "").strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValidationError(f"Unsupported OAuth provider: {provider}", field="provider")
    provider_id = str(profile.provider_id or "").strip()
    if not provider_id:
        raise ValidationError("Provider user id is required", field="provider_id")

    repo = UserRepository(db)

    account = repo.get_account(provider, provider_id)
    if account is not None:
        user = account.user
        if user.deleted_at is not None:
            raise AuthenticationError("This account has been deleted")
        if profile.access_token:
            account.access_token = profile.access_token
        if profile.refresh_token:
            account.refresh_token = profile.refresh_token
        db.commit()
        return OAuthLoginResult(user=user, is_new=False)

    email = (profile.email or "").strip().lower() or synthesize_email(provider, profile)

    user = repo.get_by_email(email, include_deleted=True)
    if user is not None:
        if user.deleted_at is not None:
            raise AuthenticationError("This account has been deleted")
        repo.link_account(user, provider, provider_id, profile.access_token, profile.refresh_token)
        if not user.avatar_url and profile.avatar_url:
            user.avatar_url = profile.avatar_url
        db.commit()
        logger.info("OAuth account linked", extra={"user_id": user.id, "provider": provider})
        return OAuthLoginResult(user=user, is_new=False)

    username = unique_username(repo, _username_base(profile, email))
    user = repo.create(email=email, username=username, avatar_url=profile.avatar_url)
    repo.link_account(user, provider, provider_id, profile.access_token, profile.refresh_token)
    db.commit()
    logger.info("OAuth user created", extra={"user_id": user.id, "provider": provider})
    return OAuthLoginResult(user=user, is_new=True)


def resolve_provider(providers: Mapping[str, OAuthProvider], name: str) -> OAuthProvider:
    """Configured provider registered under *name*.

    Raises ValidationError for unknown names and for supported providers
    that this deployment has not configured.
    """
    name = (name or "").strip().lower()
    if name not in SUPPORTED_PROVIDERS:
        raise ValidationError(f"Unsupported OAuth provider: {name}", field="provider")
    provider = providers.get(name)
    if provider is None:
        raise ValidationError(f"OAuth provider is not configured: {name}", field="provider")
    return provider


def login_with_provider(db: Session, provider: OAuthProvider, code: str) -> OAuthLoginResult:
    """Exchange *code* with *provider*, then log in or link the resulting profile."""
    code = (code or "").strip()
    if not code:
        raise ValidationError("Authorization code is required", field="code")
    profile = provider.fetch_profile(code)
    return login_with_oauth(db, provider.name, profile)
