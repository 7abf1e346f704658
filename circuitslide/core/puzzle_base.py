from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional

import chex
import jax
import jax.numpy as jnp

from circuitslide.core.puzzle_state import FieldDescriptor, PuzzleState, state_dataclass
from circuitslide.utils.util import add_img_parser


class Puzzle(ABC):
    """Abstract base class for board environments.

    Every concrete subclass must:

    1. Set ``action_size`` (number of possible actions).
    2. Implement :meth:`define_state_class` to return a ``@state_dataclass``-decorated class.
    3. Implement :meth:`get_actions`, :meth:`is_solved`, :meth:`get_solve_config`,
       :meth:`get_initial_state`, :meth:`get_string_parser`, and :meth:`get_img_parser`.

    States are immutable; every action returns a new state. The base class
    JIT-compiles the core methods and provides a batched solve test and the
    inverse-neighbour expansion.

    Attributes:
        action_size: Number of discrete actions available in this puzzle.
        State: The ``@state_dataclass`` class representing states (set during ``__init__``).
        SolveConfig: The ``@state_dataclass`` class holding the level the
            episode starts from (set during ``__init__``).
    """

    action_size: int = None

    @property
    def inverse_action_map(self) -> Optional[jnp.ndarray]:
        """
        Array where ``map[i]`` is the action undoing action ``i``, or None.

        Required by :meth:`get_inverse_neighbours` and by the
        non-backtracking scramble in :meth:`_get_shuffled_state`.
        """
        return None

    @property
    def is_reversible(self) -> bool:
        return self.inverse_action_map is not None

    class State(PuzzleState):
        pass

    class SolveConfig(PuzzleState):
        pass

    def define_solve_config_class(self) -> PuzzleState:
        """Return the ``@state_dataclass`` class used for the episode configuration.

        The default configuration stores the level state, i.e. the board
        every episode starts from and every reset returns to.
        """

        @state_dataclass
        class SolveConfig:
            LevelState: FieldDescriptor.scalar(dtype=self.State)

            def __str__(self, **kwargs):
                return self.LevelState.str(**kwargs)

        return SolveConfig

    @abstractmethod
    def define_state_class(self) -> PuzzleState:
        """Return the ``@state_dataclass`` class used for puzzle states."""
        pass

    def __init__(self, **kwargs):
        """Initialise the puzzle.

        Subclass constructors **must** call ``super().__init__(**kwargs)``
        after setting ``action_size`` and any attributes needed by
        :meth:`define_state_class`.

        Raises:
            ValueError: If ``action_size`` is still ``None`` after subclass init.
        """
        super().__init__()

        self.State = self.define_state_class()
        self.SolveConfig = self.define_solve_config_class()
        self.State = add_img_parser(self.State, self.get_img_parser())
        self.SolveConfig = add_img_parser(
            self.SolveConfig, self.get_solve_config_img_parser()
        )

        self.get_initial_state = jax.jit(self.get_initial_state)
        self.get_solve_config = jax.jit(self.get_solve_config)
        self.get_inits = jax.jit(self.get_inits)
        self.get_actions = jax.jit(self.get_actions)
        self.get_neighbours = jax.jit(self.get_neighbours)
        self.is_solved = jax.jit(self.is_solved)
        self.batched_is_solved = jax.jit(self.batched_is_solved, static_argnums=(2,))

        if self.action_size is None:
            raise ValueError(
                f"{self.__class__.__name__} must define `action_size` before calling Puzzle.__init__"
            )

        self._inverse_action_permutation = self.inverse_action_map

    @abstractmethod
    def get_string_parser(self) -> Callable:
        """Return a callable ``(state, **kwargs) -> str`` rendering a state as text."""
        pass

    def get_solve_config_img_parser(self) -> Callable:
        imgparser_state = self.get_img_parser()

        def imgparser(solve_config: "Puzzle.SolveConfig", **kwargs):
            return imgparser_state(solve_config.LevelState, **kwargs)

        return imgparser

    @abstractmethod
    def get_img_parser(self) -> Callable:
        """Return a callable ``(state, **kwargs) -> np.ndarray`` producing an ``(H, W, 3)`` image."""
        pass

    @abstractmethod
    def get_solve_config(self, key=None, data=None) -> SolveConfig:
        pass

    @abstractmethod
    def get_initial_state(
        self, solve_config: SolveConfig, key=None, data=None
    ) -> State:
        pass

    def get_inits(self, key=None) -> tuple[SolveConfig, State]:
        """Convenience method returning ``(solve_config, initial_state)``."""
        solveconfigkey, initkey = jax.random.split(key)
        solve_config = self.get_solve_config(solveconfigkey)
        return solve_config, self.get_initial_state(solve_config, initkey)

    @abstractmethod
    def get_actions(
        self,
        solve_config: SolveConfig,
        state: State,
        actions: chex.Array,
        filled: bool = True,
    ) -> tuple[State, chex.Array]:
        """Apply a single action to a state.

        Returns:
            ``(next_state, cost)``; when ``filled`` is False the state is
            returned unchanged with ``jnp.inf`` cost.
        """
        pass

    def get_neighbours(
        self, solve_config: SolveConfig, state: State, filled: bool = True
    ) -> tuple[State, chex.Array]:
        """Compute the successor state of every action.

        Returns:
            ``(neighbour_states, costs)`` where ``neighbour_states`` has
            shape ``(action_size, ...)`` and ``costs`` has shape
            ``(action_size,)``.
        """
        actions = jnp.arange(self.action_size)
        states, costs = jax.vmap(
            self.get_actions, in_axes=(None, None, 0, None), out_axes=(0, 0)
        )(solve_config, state, actions, filled)
        return states, costs

    def batched_is_solved(
        self,
        solve_configs: SolveConfig,
        states: State,
        multi_solve_config: bool = False,
    ) -> bool:
        if multi_solve_config:
            return jax.vmap(self.is_solved, in_axes=(0, 0))(solve_configs, states)
        else:
            return jax.vmap(self.is_solved, in_axes=(None, 0))(solve_configs, states)

    @abstractmethod
    def is_solved(self, solve_config: SolveConfig, state: State) -> bool:
        pass

    def action_to_string(self, action: int) -> str:
        return f"action {action}"

    @staticmethod
    def _grid_visualize_format(size: int) -> str:
        """Build a box-drawing grid format string for an ``size × size`` board."""
        form = "┏━"
        for i in range(size):
            form += "━━" if i != size - 1 else "━━┓"
        form += "\n"
        for i in range(size):
            form += "┃ "
            for j in range(size):
                form += "{:s} "
            form += "┃\n"
        form += "┗━"
        for i in range(size):
            form += "━━" if i != size - 1 else "━━┛"
        return form

    def get_inverse_neighbours(
        self, solve_config: SolveConfig, state: State, filled: bool = True
    ) -> tuple[State, chex.Array]:
        """
        Return the states from which each action leads to ``state``.

        The i-th inverse neighbour is the forward neighbour reached by the
        inverse of action i.
        """
        if self._inverse_action_permutation is None:
            raise NotImplementedError(
                "This puzzle does not define an `inverse_action_map`. "
                "To use `get_inverse_neighbours`, implement the map or override this method."
            )

        neighbours, costs = self.get_neighbours(solve_config, state, filled)
        permuted_neighbours = jax.tree_util.tree_map(
            lambda x: x[self._inverse_action_permutation], neighbours
        )
        permuted_costs = costs[self._inverse_action_permutation]
        return permuted_neighbours, permuted_costs

    def _get_shuffled_state(
        self,
        solve_config: "Puzzle.SolveConfig",
        init_state: "Puzzle.State",
        key,
        num_shuffle,
    ):
        """Scramble ``init_state`` with ``num_shuffle`` random actions.

        The inverse of the previous action is masked out so the walk never
        immediately undoes itself.
        """
        if not self.is_reversible:
            raise NotImplementedError(
                f"{self.__class__.__name__} needs an `inverse_action_map` to be shuffled"
            )
        action_size = self.action_size
        inv_map = self._inverse_action_permutation

        def cond_fun(loop_state):
            iteration_count, _, _, _ = loop_state
            return iteration_count < num_shuffle

        def body_fun(loop_state):
            iteration_count, current_state, previous_action, key = loop_state
            key, subkey = jax.random.split(key)

            mask = jnp.ones(action_size, dtype=jnp.float32)
            valid_mask = jax.lax.cond(
                previous_action >= 0,
                lambda: mask.at[inv_map[previous_action]].set(0.0),
                lambda: mask,
            )
            action = jax.random.choice(
                subkey, action_size, p=valid_mask / jnp.sum(valid_mask)
            )
            next_state, _ = self.get_actions(
                solve_config, current_state, action, filled=True
            )
            return (iteration_count + 1, next_state, action, key)

        _, final_state, _, _ = jax.lax.while_loop(
            cond_fun, body_fun, (0, init_state, jnp.int32(-1), key)
        )
        return final_state

    def __repr__(self):
        state_fields = list(self.State.__annotations__.keys())
        solve_config_fields = list(self.SolveConfig.__annotations__.keys())
        return (
            f"Puzzle({self.__class__.__name__}, "
            f"action_size={self.action_size}, "
            f"state_fields={state_fields}, "
            f"solve_config_fields={solve_config_fields})"
        )
