from __future__ import annotations

from dataclasses import dataclass

import regex
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

MAX_NAME_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('{}<>/\\"')

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)
_GRAPHEME = regex.compile(r"\X")


class SubscriberValidationError(ValueError):
    """Base class for rejected sign-up input. Always a client error."""


class EmptyOrWhitespaceName(SubscriberValidationError):
    pass


class NameTooLong(SubscriberValidationError):
    pass


class ForbiddenCharacter(SubscriberValidationError):
    pass


class MalformedEmail(SubscriberValidationError):
    pass


def grapheme_count(text: str) -> int:
    """Count user-perceived characters (Unicode extended grapheme clusters)."""
    return len(_GRAPHEME.findall(text))


@dataclass(frozen=True)
class SubscriberName:
    value: str

    @classmethod
    def parse(cls, raw: str, max_length: int = MAX_NAME_LENGTH) -> SubscriberName:
        if not raw.strip():
            raise EmptyOrWhitespaceName("Name is empty or whitespace only")
        if grapheme_count(raw) > max_length:
            raise NameTooLong(f"Name is longer than {max_length} characters")
        bad = sorted(FORBIDDEN_NAME_CHARACTERS.intersection(raw))
        if bad:
            raise ForbiddenCharacter(f"Name contains forbidden characters: {''.join(bad)}")
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SubscriberEmail:
    value: str

    @classmethod
    def parse(cls, raw: str) -> SubscriberEmail:
        try:
            normalised = _email_adapter.validate_python(raw)
        except PydanticValidationError as exc:
            raise MalformedEmail(f"{raw!r} is not a valid email address") from exc
        return cls(normalised)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NewSubscriber:
    """A sign-up that has passed validation and may be stored as-is."""

    name: SubscriberName
    email: SubscriberEmail


def validate(name: str, email: str, *, max_name_length: int = MAX_NAME_LENGTH) -> NewSubscriber:
    """Check a raw name/email pair. Raises a SubscriberValidationError subclass."""
    return NewSubscriber(
        name=SubscriberName.parse(name, max_length=max_name_length),
        email=SubscriberEmail.parse(email),
    )
