"""Global constants: paths, identities, transport options."""

# Location of the provisioned private key, relative to the working-copy root
SSH_KEY_RELATIVE_PATH = ".ssh/id_rsa"

# Owner-only read/write for key material
SSH_KEY_MODE = 0o600

# Reserved scratch area under the content directory
TMP_DIR_NAME = "tmp"

# The only remote this package manages
ORIGIN = "origin"

# Fallback committer identity; the ambient environment overrides it
DEFAULT_COMMITTER_NAME = "contentgit"
DEFAULT_COMMITTER_EMAIL = "contentgit@localhost"

# Host assumed for bare ``owner/repo`` remote identifiers
DEFAULT_GIT_HOST = "github.com"

# Always-on transport options: non-interactive, no known_hosts bookkeeping
BASE_SSH_OPTIONS = (
    ("-o", "UserKnownHostsFile=/dev/null"),
    ("-o", "StrictHostKeyChecking=no"),
)

# Default timeout (seconds) for network-touching operations; None = unlimited
DEFAULT_PUSH_TIMEOUT = None
