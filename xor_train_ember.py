# xor_train_ember.py
from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ember.ember_config import EmberNetworkConfig
from ember.ember_network import EmberNetwork


# ------------------------------------------------------------
# Config
# ------------------------------------------------------------

EPOCHS = 5000
LEARNING_RATE = 2.0
HIDDEN_SIZE = 4
RANDOM_SEED = 1337
PRINT_EVERY = 500

# Four corners of the unit square and their XOR labels
XOR_X = np.array(
    [
        [0.0, 0.0],
        [0.0, 1.0],
        [1.0, 0.0],
        [1.0, 1.0],
    ],
    dtype=np.float64,
)
XOR_Y = np.array([[0.0], [1.0], [1.0], [0.0]], dtype=np.float64)


def build_xor_net(
    hidden_size: int = HIDDEN_SIZE,
    learning_rate: float = LEARNING_RATE,
    rng=None,
) -> EmberNetwork:
    """
    2 -> hidden -> 1, sigmoid everywhere, mean-squared error.

    Random (standard normal) weights and biases: with all-zero or
    small symmetric starts the hidden units tend to learn the same
    thing and XOR never separates.
    """
    cfg = EmberNetworkConfig(
        input_size=2,
        layer_sizes=[hidden_size, 1],
        learning_rate=learning_rate,
        activation="sigmoid",
        error="mean_squared",
        weight_init="random",
        bias_init="random",
    )
    return cfg.build(rng=rng)


def train_xor_ember(
    epochs: int = EPOCHS,
    hidden_size: int = HIDDEN_SIZE,
    learning_rate: float = LEARNING_RATE,
    random_seed: int = RANDOM_SEED,
    print_every: int = PRINT_EVERY,
) -> Tuple[EmberNetwork, List[float]]:
    """
    Full-batch gradient descent on XOR.

    The epoch loop lives here, not in the engine: the network only
    ever sees one already-formed batch per call.

    Returns:
        (net, history) where history[k] is the mean error value
        after epoch k + 1.
    """
    rng = np.random.RandomState(random_seed)
    net = build_xor_net(hidden_size=hidden_size, learning_rate=learning_rate, rng=rng)

    print(f"[xor_train_ember] {net.input_size} -> {hidden_size} -> {net.output_size}, "
          f"lr={learning_rate}, epochs={epochs}")

    history: List[float] = []

    for epoch in range(1, epochs + 1):
        net.back_propagation(XOR_X, XOR_Y)

        err = float(net.error_value(XOR_X, XOR_Y))
        history.append(err)

        if print_every > 0 and (epoch % print_every == 0 or epoch == 1):
            print(f"[Epoch {epoch:05d}] error={err:.6f}")

    preds = net.forward_pass(XOR_X)
    for x_row, p in zip(XOR_X, preds):
        print(f"[xor_train_ember] {x_row.astype(int).tolist()} -> {float(p[0]):.4f}")

    return net, history


def plot_error_history(history: List[float], path: str | None = None) -> None:
    """
    Error curve over epochs. Shows the window unless a path is given.
    """
    import matplotlib.pyplot as plt

    plt.figure(figsize=(8, 5))
    plt.plot(np.arange(1, len(history) + 1), history)
    plt.yscale("log")
    plt.xlabel("epoch")
    plt.ylabel("mean error")
    plt.title("XOR training error")
    plt.tight_layout()

    if path is None:
        plt.show()
    else:
        plt.savefig(path)
        plt.close()


if __name__ == "__main__":
    _, error_history = train_xor_ember()
    plot_error_history(error_history)
