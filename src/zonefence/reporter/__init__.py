from .console import group_by_file, report_to_console, report_to_json

__all__ = ["group_by_file", "report_to_console", "report_to_json"]
