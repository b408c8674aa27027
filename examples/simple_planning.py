"""Simple example of driving an AUV with the planner session."""

import sys
sys.path.insert(0, '..')

from auv_nav import GridConfig, ObstacleGrid, PlannerSession, Position, Visualizer
import matplotlib.pyplot as plt


def main():
    print("Simple AUV Planning Example")
    print("=" * 40)

    # 1. Grid and obstacles
    config = GridConfig(width=30, height=20)
    obstacles = [Position(x, 10) for x in range(10, 16)]  # Wall across row 10
    obstacles += [Position(20, y) for y in range(4, 16)]  # Vertical reef

    print(f"Grid: {config.width} x {config.height} cells")
    print(f"Obstacles: {len(obstacles)}")

    # 2. Start and goal
    start = Position(4, 10)
    goal = Position(25, 10)

    print(f"\nStart: ({start.x}, {start.y})")
    print(f"Goal:  ({goal.x}, {goal.y})")

    # 3. Poll the session once per tick, as the simulation loop does
    session = PlannerSession(config)
    position = start
    trail = []

    print("\nDriving...")
    for _ in range(200):
        step = session.next_step(position, goal, obstacles, "rrt")
        if step.move is None:
            print(f"Stopped: {step.kind.value}")
            break
        position = position.step(step.move)
        trail.append(position)

    print(f"Moves taken: {len(trail)} ({session.plan_count} plans)")

    # 4. Visualize
    viz = Visualizer(ObstacleGrid(obstacles, config))
    viz.plot_planning_result(
        start, goal,
        trail=trail,
        title="RRT - Simple Example"
    )

    plt.show()


if __name__ == "__main__":
    main()
