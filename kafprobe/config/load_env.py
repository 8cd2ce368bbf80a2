import os
from typing import Any, Dict, List, Mapping, TypeVar

from dotenv import dotenv_values

from .env import Env

T = TypeVar("T", bound=Env)


def load_env(
    default: type[T] = Env,
    env_file: str | None = ".env",
    override: T | None = None,
) -> T:
    """
    Builds ``default`` from ``env_file`` (when it exists) and then the
    process environment, so a variable exported in the shell beats the
    same name in the file. Fields explicitly set on ``override`` beat
    both, and the result takes the override's type.
    """
    converters = default.types_map()

    sources: List[Mapping[str, str | None]] = []
    if env_file and os.path.exists(env_file):
        sources.append(dotenv_values(dotenv_path=env_file))

    sources.append(os.environ)

    values: Dict[str, Any] = {}
    for source in sources:
        for envar_name, convert in converters.items():
            if envar_value := source.get(envar_name):
                values[envar_name] = convert(envar_value)

    model = default
    if override is not None:
        values.update(override.model_dump(exclude_unset=True, exclude_none=True))
        model = type(override)

    return model(**values)
