"""
Online deep Q-learning planner.

The agent learns while it plans: each query runs one episode from start to
goal, pushing every transition into a replay buffer and training the Q
network on a random minibatch after each step. The network and the buffer
live as long as the planner instance, so the policy improves across the
ticks of a simulation run.

The learned policy is best effort. Whenever the model cannot be built, a
step fails numerically, or the agent keeps bumping into walls, the query is
answered by A* instead.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Tuple

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from .astar import AStarPlanner, PlanningResult, elapsed_ms
from .grid import GridConfig, Move, ObstacleGrid, Position, as_position
from .smoothing import optimize_path

logger = logging.getLogger(__name__)

STATE_SIZE = 6
NUM_ACTIONS = len(Move)


@dataclass(frozen=True)
class Experience:
    """One transition (s, a, r, s', done)."""

    state: Tuple[float, ...]
    action: int
    reward: float
    next_state: Tuple[float, ...]
    done: bool


class ReplayBuffer:
    """Bounded FIFO of transitions with uniform sampling."""

    def __init__(self, capacity: int, seed: int | None = None):
        self.capacity = int(capacity)
        self.buf: Deque[Experience] = deque(maxlen=self.capacity)
        self.rng = np.random.default_rng(seed)

    def __len__(self) -> int:
        return len(self.buf)

    def push(self, experience: Experience) -> None:
        # deque drops the oldest entry once full
        self.buf.append(experience)

    def sample(self, batch_size: int):
        """Sample a batch without replacement as stacked numpy arrays."""
        idxs = self.rng.choice(len(self.buf), size=int(batch_size), replace=False)
        batch = [self.buf[i] for i in idxs]
        return (np.array([e.state for e in batch], dtype=np.float32),
                np.array([e.action for e in batch], dtype=np.int64),
                np.array([e.reward for e in batch], dtype=np.float32),
                np.array([e.next_state for e in batch], dtype=np.float32),
                np.array([e.done for e in batch], dtype=np.float32))


class QNetwork(nn.Module):
    """MLP mapping the 6-float state to one value per move."""

    def __init__(self, in_dim: int = STATE_SIZE, n_actions: int = NUM_ACTIONS,
                 hidden: Tuple[int, ...] = (64, 64)):
        super().__init__()
        layers: List[nn.Module] = []
        last = in_dim
        for h in hidden:
            layers += [nn.Linear(last, h), nn.ReLU()]
            last = h
        layers += [nn.Linear(last, n_actions)]
        self.net = nn.Sequential(*layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.net(x)  # [B, nA]


@dataclass
class DRLConfig:
    """DRL planner configuration."""

    # Policy and learning
    epsilon: float = 0.05  # Exploration rate
    gamma: float = 0.95  # Discount factor
    learning_rate: float = 1e-3
    hidden_sizes: Tuple[int, ...] = (64, 64)
    max_grad_norm: float = 10.0

    # Replay
    buffer_size: int = 10_000
    batch_size: int = 64

    # Episode limits
    max_steps: int = 1000
    max_failed_attempts: int = 50  # Consecutive invalid moves before falling back

    # Reward shaping
    collision_reward: float = -100.0
    goal_reward: float = 100.0
    distance_penalty: float = 0.1  # Per cell of remaining distance

    seed: int | None = None

    def __post_init__(self):
        if not 0.0 <= self.epsilon <= 1.0:
            raise ValueError(f"epsilon must be in [0, 1], got {self.epsilon}")
        if self.batch_size > self.buffer_size:
            raise ValueError("batch_size cannot exceed buffer_size")


class DRLPlanner:
    """
    Epsilon-greedy DQN agent that trains online during planning.

    Planning is synchronous. The only points where work is handed to the
    model are predict() and train_on_batch(), so a caller that wants to keep
    the tick loop responsive can run find_path on a worker.
    """

    name = "Deep Reinforcement Learning (DQN)"
    description = "Learns a navigation policy online with experience replay. Falls back to A* when untrained or stuck."

    def __init__(
        self,
        grid_config: GridConfig | None = None,
        config: DRLConfig | None = None
    ):
        self.grid_config = grid_config or GridConfig()
        self.config = config or DRLConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.buffer = ReplayBuffer(self.config.buffer_size, seed=self.config.seed)
        self.trained_steps = 0
        self._fallback = AStarPlanner(self.grid_config)

        self.model: QNetwork | None = None
        self.optimizer: optim.Optimizer | None = None
        try:
            self._build_model()
        except Exception:
            logger.exception("DQN model initialization failed, planner will use A*")
            self.model = None
            self.optimizer = None

    @property
    def ready(self) -> bool:
        return self.model is not None

    def _build_model(self) -> None:
        # Forked CPU generator: seeding here leaves torch's global RNG untouched
        with torch.random.fork_rng(devices=[]):
            if self.config.seed is not None:
                torch.manual_seed(self.config.seed)
            self.model = QNetwork(STATE_SIZE, NUM_ACTIONS, tuple(self.config.hidden_sizes))
        self.optimizer = optim.Adam(self.model.parameters(), lr=self.config.learning_rate)
        self.loss_fn = nn.MSELoss()

    def find_path(
        self,
        start: Position,
        goal: Position,
        obstacles: Iterable[Position]
    ) -> PlanningResult:
        start, goal = as_position(start), as_position(goal)
        grid = obstacles if isinstance(obstacles, ObstacleGrid) else ObstacleGrid(obstacles, self.grid_config)

        if not self.ready:
            return self._fallback.search(start, goal, grid)

        try:
            return self._run_episode(start, goal, grid)
        except Exception:
            logger.warning("DQN planning failed for %s -> %s, using A*", start, goal, exc_info=True)
            return self._fallback.search(start, goal, grid)

    def encode_state(self, position: Position, goal: Position, grid: ObstacleGrid) -> Tuple[float, ...]:
        """Normalized (position, goal, nearest obstacle) feature vector."""
        w, h = float(grid.width), float(grid.height)
        nearest = grid.nearest_obstacle(position)
        ox, oy = (nearest.x, nearest.y) if nearest is not None else (-1, -1)
        return (position.x / w, position.y / h,
                goal.x / w, goal.y / h,
                ox / w, oy / h)

    def predict(self, state: Tuple[float, ...]) -> np.ndarray:
        """Q values for every move in the given state."""
        with torch.no_grad():
            q = self.model(torch.tensor([state], dtype=torch.float32))
        return q[0].numpy()

    def select_action(self, state: Tuple[float, ...]) -> Move:
        """Epsilon-greedy move selection."""
        if self.rng.random() < self.config.epsilon:
            return Move(int(self.rng.integers(NUM_ACTIONS)))
        return Move(int(np.argmax(self.predict(state))))

    def remember(self, experience: Experience) -> float | None:
        """Store a transition and train once enough have been collected."""
        self.buffer.push(experience)
        if len(self.buffer) >= self.config.batch_size:
            return self.train_on_batch()
        return None

    def train_on_batch(self) -> float:
        """
        One gradient step on a random minibatch.

        Target: y = r + gamma * max_a' Q(s', a'), or y = r for terminal
        transitions. Only the Q values of the taken actions are regressed.
        """
        S, A, R, S2, D = self.buffer.sample(self.config.batch_size)

        with torch.no_grad():
            q_next = self.model(torch.from_numpy(S2)).max(dim=1).values
            y = torch.from_numpy(R) + self.config.gamma * (1.0 - torch.from_numpy(D)) * q_next

        q_sa = self.model(torch.from_numpy(S)).gather(1, torch.from_numpy(A).view(-1, 1)).squeeze(1)
        loss = self.loss_fn(q_sa, y)
        if not torch.isfinite(loss):
            raise FloatingPointError(f"Non-finite DQN loss: {loss.item()}")

        self.optimizer.zero_grad()
        loss.backward()
        nn.utils.clip_grad_norm_(self.model.parameters(), max_norm=self.config.max_grad_norm)
        self.optimizer.step()

        self.trained_steps += 1
        return float(loss.item())

    def _reward(self, position: Position, goal: Position) -> Tuple[float, bool]:
        if position == goal:
            return self.config.goal_reward, True
        return -self.config.distance_penalty * position.distance_to(goal), False

    def _run_episode(self, start: Position, goal: Position, grid: ObstacleGrid) -> PlanningResult:
        cfg = self.config
        t0 = time.perf_counter()

        position = start
        state = self.encode_state(position, goal, grid)
        trace = [start]
        failed_attempts = 0
        decisions = 0

        for _ in range(cfg.max_steps):
            if position == goal:
                break

            move = self.select_action(state)
            decisions += 1
            candidate = position.step(move)

            if not grid.is_free(candidate):
                # Invalid move: penalize, stay in place and decide again
                self.remember(Experience(state, int(move), cfg.collision_reward, state, True))
                failed_attempts += 1
                if failed_attempts >= cfg.max_failed_attempts:
                    logger.warning(
                        "DQN agent stuck at %s after %d invalid moves, using A*",
                        position, failed_attempts
                    )
                    return self._fallback.search(start, goal, grid)
                continue

            failed_attempts = 0
            reward, done = self._reward(candidate, goal)
            next_state = self.encode_state(candidate, goal, grid)
            self.remember(Experience(state, int(move), reward, next_state, done))

            position, state = candidate, next_state
            trace.append(position)

        if position != goal:
            logger.info(
                "DQN episode ended %.1f cells from goal after %d decisions",
                position.distance_to(goal), decisions
            )

        path = optimize_path(trace, grid)
        return PlanningResult(path, decisions, elapsed_ms(t0))
