import os
import sys

if sys.platform == "win32":
    _DEFAULT_TEXTFILE_DIRECTORY = r"C:\Program Files\wmi_exporter\textfile_inputs"
else:
    _DEFAULT_TEXTFILE_DIRECTORY = "/var/lib/wmi_exporter/textfile_inputs"

# empty string means "no textfiles configured"
TEXTFILE_DIRECTORY = os.getenv("TEXTFILE_DIRECTORY", _DEFAULT_TEXTFILE_DIRECTORY)
TEXTFILE_EXTENSION = ".prom"

METRICS_NAMESPACE = os.getenv("METRICS_NAMESPACE", "wmi")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
