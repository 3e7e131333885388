from pathlib import Path

RUNSTATE_DIR = Path(__file__).parent
REPO_ROOT_DIR = RUNSTATE_DIR.parent

# runc's default state root
DEFAULT_ROOT = "/run/runc"

STATE_FILENAME = "state.json"
# Present until the init process has been told to exec the user process
EXEC_FIFO_FILENAME = "exec.fifo"

BUNDLE_LABEL = "bundle"

TABLE_HEADERS = ("ID", "PID", "STATUS", "BUNDLE", "CREATED")
