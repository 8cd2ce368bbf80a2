from .duration import Duration as Duration
from .time_parser import TimeParser as TimeParser
