import logging
import signal

from adaptive_alarm.intent_router import IntentRouter
from adaptive_alarm.learning import LearningAgent
from adaptive_alarm.manager import AlarmManager
from adaptive_alarm.scheduler import SchedulerLoop
from adaptive_alarm.sounds import AlarmSoundPlayer
from adaptive_alarm.storage import JsonFileStore
from config import Config, load_config, setup_logging

logger = logging.getLogger("adaptive_alarm")


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


class AssistantRuntime:
    def __init__(self, config: Config):
        self.config = config
        self.store = JsonFileStore(config.store_path, write_retries=config.store_write_retries)
        self.agent = LearningAgent(
            self.store,
            learning_rate=config.learning_rate,
            discount_factor=config.discount_factor,
            exploration_rate=config.exploration_rate,
            time_bucket_minutes=config.time_bucket_min,
            seed=config.learning_seed,
        )
        self.sound_player = AlarmSoundPlayer(config.alarm_sound_path)
        self.alarm_manager = AlarmManager(
            self.store,
            agent=self.agent,
            sound_player=self.sound_player,
            on_alarm_triggered=self._on_alarm_triggered,
        )
        self.scheduler = SchedulerLoop(self.alarm_manager, check_interval=config.check_interval_s)
        self.intent_router = IntentRouter(self.alarm_manager)

    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.shutdown()
        self.sound_player.stop_loop()

    def handle_line(self, line: str) -> None:
        result = self.intent_router.handle_text(line)
        if result.handled and result.response_text:
            print(result.response_text)

    def _on_alarm_triggered(self, alarm) -> None:
        print(f"\n*** {alarm.label} ({alarm.time}) - type 'snooze' or 'dismiss' ***")


def main() -> None:
    config = load_config()
    setup_logging(config.log_level, config.log_dir)
    signal.signal(signal.SIGINT, graceful_exit)
    logger.info("Starting adaptive alarm (store=%s)", config.store_path)

    runtime = AssistantRuntime(config)
    runtime.start()
    print("Type 'help' for commands.")
    try:
        while True:
            line = input("> ")
            if line.strip().lower() in ("quit", "exit"):
                break
            runtime.handle_line(line)
    except (KeyboardInterrupt, EOFError):
        logger.info("Interrupted by user")
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    main()
