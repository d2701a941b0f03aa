"""Exceptions raised by the matrix and network layers."""


class NetworkError(ValueError):
    """Base class for precondition violations in mlpnet."""


class ShapeMismatchError(NetworkError):
    """Operand shapes violate an operation's precondition."""

    def __init__(self, operation, left_shape, right_shape):
        self.operation = operation
        self.left_shape = tuple(left_shape)
        self.right_shape = tuple(right_shape)
        super().__init__(
            f"Attempt to {operation} matrix of size {left_shape[0]}x{left_shape[1]} "
            f"with matrix of size {right_shape[0]}x{right_shape[1]}"
        )


class InvalidTopologyError(NetworkError):
    """Layer sizes cannot form a network."""


class InputArityError(NetworkError):
    """Vector length does not match the first or last layer size."""

    def __init__(self, what, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Number of {what} ({actual}) does not match number of neurons "
            f"in the {'first' if what == 'inputs' else 'last'} layer ({expected})"
        )
