from typing import Annotated

from pydantic import BeforeValidator

from .time_parser import TimeParser

_parser = TimeParser()


Duration = Annotated[float, BeforeValidator(_parser.parse)]
