import chex
import jax.numpy as jnp

from circuitslide.circuit.connection import Kind


def evaluate(kinds: chex.Array, powered: chex.Array) -> chex.Array:
    """
    True iff the board has at least one target and every target is powered.

    A board without targets never counts as solved, however much of it is
    powered.
    """
    targets = jnp.asarray(kinds) == Kind.TARGET
    all_powered = jnp.all(jnp.logical_or(jnp.logical_not(targets), powered))
    return jnp.logical_and(jnp.any(targets), all_powered)
