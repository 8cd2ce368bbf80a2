from .json_report import JSONReport as JSONReport
