"""
Application constants.

Centralized constants for the ledger integrity subsystem.
"""

# ========================================================================
# LEDGER NODE CONSTANTS
# ========================================================================

# Node operation timeouts (in seconds)
LEDGER_NODE_TIMEOUT = 30.0  # Standard node operations (status, params, tx info)
LEDGER_EXECUTOR_TIMEOUT = 45.0  # Upper bound for a single run_in_executor call
LEDGER_CONFIRMATION_TIMEOUT = 120.0  # Waiting for confirmation (2 minutes)
LEDGER_EXECUTOR_WORKERS = 4  # Thread pool size for the sync algod client

# Confirmation
DEFAULT_CONFIRMATION_ROUNDS = 10  # Rounds to wait before giving up on confirmation

# Transaction parameter fetch retries
PARAMS_MAX_ATTEMPTS = 3
PARAMS_RETRY_DELAY_BASE = 1.0  # 1s, 2s, ...

# ========================================================================
# FUNDING CONSTANTS
# ========================================================================

# 0.1 ALGO = 100_000 microAlgos (minimum balance for an account to transact)
MINIMUM_BALANCE_MICROALGOS = 100_000
MICROALGOS_PER_ALGO = 1_000_000

FAUCET_TIMEOUT = 30.0  # HTTP timeout per faucet request
FAUCET_SETTLE_DELAY = 8.0  # Wait for the faucet payment to land before re-checking
BALANCE_CHECK_ATTEMPTS = 3
BALANCE_CHECK_DELAY_BASE = 1.0

# ========================================================================
# COMMITMENT CONSTANTS
# ========================================================================

COMMIT_MAX_ATTEMPTS = 3
COMMIT_RETRY_DELAY_BASE = 2.0  # base * attempt: 2s, 4s
COMMIT_RETRY_HINT_MINUTES = 5  # "retry in N minutes" shown to the user

# ========================================================================
# VERIFICATION CONSTANTS
# ========================================================================

VERIFY_FETCH_ATTEMPTS = 3
VERIFY_FETCH_DELAY = 2.0  # Fixed delay between transaction info fetches

# Fallback re-fetch when the node returned no note (pruned pending info)
FALLBACK_ATTEMPTS = 3
FALLBACK_INITIAL_DELAY = 5.0
FALLBACK_DELAY_STEP = 3.0  # step * attempt between fallback attempts

# Bounded depth for the generic "note" key search in transaction info
NOTE_SEARCH_MAX_DEPTH = 4
