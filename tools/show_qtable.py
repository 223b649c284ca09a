import sys
from pathlib import Path

from adaptive_alarm.learning import ACTIONS, LearningAgent
from adaptive_alarm.storage import JsonFileStore
from time_utils import DAY_NAMES


def main():
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("data/store.json")
    agent = LearningAgent(JsonFileStore(path), exploration_rate=0.0)
    states = sorted(agent.states(), key=lambda s: (s.target_time, s.day, s.current_time))
    print(f"{len(states)} states in {path}")
    print("day  observed target  " + " ".join(f"{a:>6d}" for a in ACTIONS) + "   best")
    for state in states:
        values = agent.values(state)
        print(
            f"{DAY_NAMES[state.day]}  {state.current_time}    {state.target_time}  "
            + " ".join(f"{values[a]:6.2f}" for a in ACTIONS)
            + f"  {agent.choose_action(state):+d}"
        )


if __name__ == "__main__":
    main()
