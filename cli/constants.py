"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["list", "replicate", "diagnose", "clear", "exit", "help"]

CONNECTION_FLAGS = ("--tenant", "--domain", "--token", "--timeout")

COMMAND_FLAGS = {
    "list": CONNECTION_FLAGS + (
        "--namespace", "--nodes", "--page-size", "--suffix", "--workers",
        "--out-dir", "--insecure", "--debug",
    ),
    "replicate": CONNECTION_FLAGS + (
        "--list-file", "--target", "--sources", "--target-namespace", "--retries",
        "--retry-delay", "--workers", "--out-dir", "--dry-run", "--insecure", "--debug",
    ),
    "diagnose": CONNECTION_FLAGS + ("--path", "--target", "--nodes", "--insecure"),
}

BOOLEAN_FLAGS = frozenset({"--insecure", "--debug", "--dry-run"})

LIST_FILE_SUFFIXES = (".tsv", ".txt")

STYLE = Style.from_dict(
    {
        "prompt": "#2E86C1 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;134;193m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  _
 | |__   ___ _ __        ___ _   _ _ __   ___
 | '_ \\ / __| '_ \\ _____/ __| | | | '_ \\ / __|
 | | | | (__| |_) |_____\\__ \\ |_| | | | | (__
 |_| |_|\\___| .__/      |___/\\__, |_| |_|\\___|
            |_|              |___/
{RESET}"""

WELCOME_TITLE = "hcp-sync - multi-node inventory and replication"
WELCOME_HELP = (
    "Commands: list (scan a namespace), replicate (copy missing objects), "
    "diagnose (check one path).\n"
    "Type 'help <command>' for its flags, 'help' for everything, or 'exit' to quit.\n"
)

PROMPT_TEXT = "hcpsync> "

HELP_TEXT = """Available commands:
  list       --namespace NS --nodes N1,N2 [--page-size N] [--suffix .ccf]
             [--workers N] [--out-dir DIR] [--insecure] [--debug]
                                      List a namespace on every node and merge the results
  replicate  --list-file FILE --target NODE --sources N1,N2
             [--target-namespace NS] [--retries N] [--retry-delay S] [--workers N]
             [--out-dir DIR] [--dry-run] [--insecure] [--debug]
                                      Copy objects missing on the target from a path<TAB>nodes file
  diagnose   --path NS/KEY --target NODE --nodes N1,N2 [--insecure]
                                      Show what a replication run would do for one object
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Connection flags (any command): --tenant T --domain D --token TOKEN [--timeout S]
Defaults come from ~/.hcpsync/config.json and HCPSYNC_* environment variables.
Node lists accept commas or spaces: --nodes hcp1,hcp2 or --nodes 'hcp1 hcp2'.
Examples:
  list --namespace ns1 --nodes hcp1,hcp2,hcp3
  replicate --list-file output/20240101_120000/results_found.tsv --target hcp3 --sources hcp1,hcp2 --dry-run
  diagnose --path ns1/reports/2024/q1.ccf --target hcp3 --nodes hcp1,hcp2"""

USAGE_TEXT = "usage: hcpsync {list|replicate|diagnose} [flags]   (no arguments starts the interactive shell)"

COMMAND_USAGE = {
    "list": """list --namespace NS --nodes N1,N2 [--page-size N] [--suffix .ccf]
     [--workers N] [--out-dir DIR] [--insecure] [--debug]
  Lists NS on every node and writes <node>.txt, results_found.tsv and
  multi_location.txt under a timestamped run directory.""",
    "replicate": """replicate --list-file FILE --target NODE --sources N1,N2
          [--target-namespace NS] [--retries N] [--retry-delay S] [--workers N]
          [--out-dir DIR] [--dry-run] [--insecure] [--debug]
  Copies every path<TAB>nodes row that is missing on NODE from its single
  allow-listed source. Objects already on NODE are never overwritten.""",
    "diagnose": """diagnose --path NS/KEY --target NODE --nodes N1,N2 [--insecure]
  Probes NODE, then each candidate node, and prints the decision a
  replication run would make. Nothing is copied.""",
}
