from .env import Env as Env
from .load_env import load_env as load_env
from .profile import (
    Profile as Profile,
    ProfileFile as ProfileFile,
    load_profiles as load_profiles,
    resolve_profile as resolve_profile,
)
