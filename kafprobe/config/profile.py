from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, StrictStr, ValidationError, model_validator

from kafprobe.errors import ProfileError


class KafscaleSettings(BaseModel):
    metricsUrl: Optional[StrictStr] = None


class Profile(BaseModel):
    name: StrictStr = ""
    description: StrictStr = ""
    brokers: List[StrictStr] = Field(default_factory=list)
    metrics_url: Optional[StrictStr] = None
    kafscale: Optional[KafscaleSettings] = None

    @model_validator(mode="after")
    def resolve_metrics_url(self):
        if self.metrics_url is None and self.kafscale is not None:
            self.metrics_url = self.kafscale.metricsUrl

        return self


class ProfileFile(BaseModel):
    default_profile: StrictStr = "local-service"
    profiles: Dict[str, Profile] = Field(default_factory=dict)

    def resolve(self, profile_id: str | None = None) -> Tuple[str, Profile]:
        name = profile_id or self.default_profile

        profile = self.profiles.get(name)
        if profile is None:
            raise ProfileError(
                f"Unknown profile: {name} (available: {', '.join(self.profiles) or 'none'})"
            )

        if len(profile.brokers) == 0:
            raise ProfileError(f"Profile {name} missing brokers")

        return name, profile


def default_profile_paths() -> List[str]:
    return [
        os.path.join(os.getcwd(), "config", "profiles.json"),
        os.path.join(os.getcwd(), "profiles.json"),
    ]


def load_profiles(path: str | None = None) -> Tuple[ProfileFile, str]:
    candidates = [path] if path else default_profile_paths()

    for candidate in candidates:
        profile_path = Path(candidate)
        if profile_path.exists() is False:
            continue

        try:
            return (
                ProfileFile.model_validate(json.loads(profile_path.read_text())),
                str(profile_path),
            )

        except (OSError, json.JSONDecodeError, ValidationError) as err:
            raise ProfileError(f"Unable to load profiles from {profile_path}: {err}") from err

    raise ProfileError(f"profiles.json not found at {', '.join(candidates)}")


def resolve_profile(
    profile_id: str | None = None,
    path: str | None = None,
) -> Tuple[str, Profile, str]:
    profiles, source = load_profiles(path)
    name, profile = profiles.resolve(profile_id)

    return name, profile, source
