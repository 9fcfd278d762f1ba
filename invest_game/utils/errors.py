# invest_game/utils/errors.py
class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided config (turns, fee rate, thresholds).
    Should NOT print traceback.
    """


class GameError(RuntimeError):
    """
    游戏内可预期的失败。

    Trading 不抛出这些异常，而是把实例放进 TradeResult.error；
    只有调用 TradeResult.unwrap() 时才会真正 raise。
    """

    code: str = "game_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InsufficientFunds(GameError):
    code = "insufficient_funds"


class InsufficientHoldings(GameError):
    code = "insufficient_holdings"


class InvalidInstrument(GameError):
    code = "invalid_instrument"


class InvalidTurnState(GameError):
    """Action attempted outside PLAYING."""

    code = "invalid_turn_state"


class TradeRejected(GameError):
    """Repository mutation failed (cash already compensated) or bad quantity."""

    code = "trade_rejected"
