"""
Default torch training strategy.

Runs full-batch training of the network bound to a NormalizedSquaredError
functional and reports the final training and selection errors. The search
loop calls ``train()`` once per trial and blocks until it returns.

Supported main methods:
- GRADIENT_DESCENT: ``torch.optim.SGD``
- QUASI_NEWTON: ``torch.optim.LBFGS`` with strong-Wolfe line search
- NO_MAIN: no training, errors reported as (0, 0)
- USER_MAIN: calls a user-supplied function, errors reported as (0, 0)
"""

import time
from typing import Callable, Optional

import torch
from loguru import logger

from hidden_order.config.training import TrainingConfig
from hidden_order.errors import ConfigurationError
from hidden_order.training.loss import NormalizedSquaredError
from hidden_order.training.results import Trainer, TrainingMethod, TrainingResult


class TrainingStrategy(Trainer):
    """Full-batch torch trainer with early stopping on the selection partition.

    Args:
        loss_functional: Scoring functional binding network and data set
        config: Training hyperparameters (default: TrainingConfig())
        user_main: Callable run instead of training for the USER_MAIN method

    Example:
        >>> loss = NormalizedSquaredError(network, data_set)
        >>> trainer = TrainingStrategy(loss, TrainingConfig(method="gradient_descent"))
        >>> result = trainer.train()
    """

    def __init__(
        self,
        loss_functional: Optional[NormalizedSquaredError] = None,
        config: Optional[TrainingConfig] = None,
        user_main: Optional[Callable[[], None]] = None,
    ):
        self.loss_functional = loss_functional
        self.config = config if config is not None else TrainingConfig()
        self.user_main = user_main
        self._main_method = TrainingMethod.parse(self.config.method)

        if self._main_method in (TrainingMethod.CONJUGATE_GRADIENT, TrainingMethod.LEVENBERG_MARQUARDT):
            raise ConfigurationError(
                problem=f"{self._main_method.value} is not available in the torch training strategy",
                recovery="Use gradient_descent or quasi_newton, or supply your own Trainer",
            )
        if self._main_method is TrainingMethod.USER_MAIN and user_main is None:
            raise ConfigurationError(
                problem="user_main method selected without a user_main callable",
                recovery="Pass user_main=... to TrainingStrategy",
            )

    @property
    def main_method(self) -> TrainingMethod:
        return self._main_method

    def train(self) -> TrainingResult:
        """Train the bound network and report final errors.

        Raises:
            ConfigurationError: If no loss functional is attached
            DegenerateTargetsError: Propagated from the loss functional
        """
        if self._main_method is TrainingMethod.NO_MAIN:
            return TrainingResult(method=TrainingMethod.NO_MAIN, stopping_reason="No training")
        if self._main_method is TrainingMethod.USER_MAIN:
            self.user_main()
            return TrainingResult(method=TrainingMethod.USER_MAIN, stopping_reason="User main")

        if self.loss_functional is None:
            raise ConfigurationError(
                problem="Training strategy has no loss functional",
                recovery="Construct TrainingStrategy(NormalizedSquaredError(network, data_set))",
            )

        loss = self.loss_functional
        network = loss.network
        cfg = self.config
        network.train()

        # Parameters change shape between orders, so the optimizer is per call
        optimizer = self._make_optimizer(network.parameters())

        def closure():
            optimizer.zero_grad(set_to_none=True)
            value = loss.training_loss()
            value.backward()
            return value

        start_time = time.time()
        previous_selection_error = float("inf")
        selection_error_increases = 0
        stopping_reason = "Maximum epochs"
        epoch = 0

        for epoch in range(1, cfg.maximum_epochs + 1):
            optimizer.step(closure)

            training_error = loss.calculate_training_error()
            selection_error = loss.calculate_selection_error()

            if selection_error > previous_selection_error:
                selection_error_increases += 1
            else:
                selection_error_increases = 0
            previous_selection_error = selection_error

            if epoch % cfg.display_period == 0:
                logger.debug(
                    f"Epoch {epoch}: training error {training_error:.6f}, "
                    f"selection error {selection_error:.6f}"
                )

            if training_error <= cfg.training_error_goal:
                stopping_reason = "Training error goal"
                break
            if selection_error_increases >= cfg.maximum_selection_error_increases:
                stopping_reason = "Maximum selection error increases"
                break
            if time.time() - start_time >= cfg.maximum_time:
                stopping_reason = "Maximum training time"
                break

        network.eval()
        return TrainingResult(
            method=self._main_method,
            final_training_error=loss.calculate_training_error(),
            final_selection_error=loss.calculate_selection_error(),
            epochs_number=epoch,
            elapsed_time=time.time() - start_time,
            stopping_reason=stopping_reason,
        )

    def _make_optimizer(self, parameters) -> torch.optim.Optimizer:
        if self._main_method is TrainingMethod.GRADIENT_DESCENT:
            return torch.optim.SGD(parameters, lr=self.config.learning_rate)
        return torch.optim.LBFGS(
            parameters,
            lr=self.config.learning_rate,
            max_iter=20,
            line_search_fn="strong_wolfe",
        )
