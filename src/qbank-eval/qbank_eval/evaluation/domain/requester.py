"""Requester — the identity on whose behalf a job operation runs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Requester:
    user_id: str
    is_admin: bool = False
