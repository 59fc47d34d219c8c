"""
Engine errors
"""


class EngineError(RuntimeError):
    """
    The engine cannot make any progress: no request pool or no transport
    """
