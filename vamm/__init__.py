"""
vamm - Leveraged Trading on a Constant-Product Curve

A collateral ledger paired with a virtual AMM: users deposit an asset, receive
leveraged margin, and open/close long or short positions priced by a fixed
reserve product instead of an order book.

Usage:
    from vamm import Token, CollateralLedger, PricingEngine

    usdc = Token("USDC", "Mock USDC")
    vault = CollateralLedger(usdc, owner="admin")
    engine = PricingEngine(vault, base_reserve=3_500_000, quote_reserve=1_000)
    vault.bind_engine("admin", engine.address)

    usdc.mint("alice", 100)
    usdc.approve("alice", vault.address, 100)
    vault.deposit("alice", 100)                      # leveraged balance 1000

    index = engine.open_position("alice", 200, is_long=True)
    credit = engine.close_position("alice", index)   # 200 back
"""

# Core types
from .core import (
    Address,
    FungibleAsset,
    Direction,
    Position,
    ReserveState,
    SwapResult,
    Deposited,
    Withdrawn,
    EngineBound,
    PositionOpened,
    PositionClosed,
    VammError,
    Unauthorized,
    AlreadyBound,
    ZeroAmount,
    ReserveExhausted,
    InsufficientCollateral,
    InsufficientBalance,
    InvalidIndex,
    ArithmeticFault,
    ArithmeticOverflow,
    ArithmeticUnderflow,
    AssetError,
    InsufficientFunds,
    InsufficientAllowance,
)

# Arithmetic helpers
from .arithmetic import (
    MAX_LEVERAGE,
    UINT256_MAX,
    abs_diff,
    require_uint,
    checked_add,
    checked_sub,
    checked_mul,
)

# Swap math
from .curve import (
    initial_state,
    compute_open,
    compute_close,
    product_drift,
)

# Components
from .token import Token
from .collateral import CollateralLedger
from .engine import PricingEngine

__all__ = [
    # Core
    'Address', 'FungibleAsset', 'Direction', 'Position', 'ReserveState', 'SwapResult',
    'Deposited', 'Withdrawn', 'EngineBound', 'PositionOpened', 'PositionClosed',
    # Exceptions
    'VammError', 'Unauthorized', 'AlreadyBound', 'ZeroAmount', 'ReserveExhausted',
    'InsufficientCollateral', 'InsufficientBalance', 'InvalidIndex',
    'ArithmeticFault', 'ArithmeticOverflow', 'ArithmeticUnderflow',
    'AssetError', 'InsufficientFunds', 'InsufficientAllowance',
    # Arithmetic
    'MAX_LEVERAGE', 'UINT256_MAX', 'abs_diff', 'require_uint',
    'checked_add', 'checked_sub', 'checked_mul',
    # Curve
    'initial_state', 'compute_open', 'compute_close', 'product_drift',
    # Components
    'Token', 'CollateralLedger', 'PricingEngine',
]

__version__ = '1.0.0'
