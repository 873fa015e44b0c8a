"""Short random identifiers for ticket numbers and payment references."""

import secrets
import string

from ticketing.services.collaborators import IdGenerator

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"


class SecretsIdGenerator(IdGenerator):
    """Draws identifiers from a URL-safe alphabet using the secrets module."""

    def __init__(self, alphabet: str = URL_SAFE_ALPHABET) -> None:
        self._alphabet = alphabet

    def short_id(self, size: int) -> str:
        return "".join(secrets.choice(self._alphabet) for _ in range(size))
