"""Entry point for the Dataflow visualizer.

Sets up the ECS world, event bus, panels, the lookup timeline and the Arcade window.
"""
import logging

from arcade import Window, run, set_background_color, color, key

from choreo.constants import WINDOW_HEIGHT, WINDOW_TITLE, WINDOW_WIDTH
from choreo.events.bus import EVENT_TICK, EventBus
from choreo.scenes import build_lookup_scene, create_stage
from choreo.systems.playback import PlaybackController, PlaybackSystem
from choreo.systems.render import RenderSystem
from choreo.utils.logging import configure_logging

LOG = logging.getLogger(__name__)


class DataflowWindow(Window):
    def __init__(self):
        super().__init__(WINDOW_WIDTH, WINDOW_HEIGHT, WINDOW_TITLE, resizable=True)
        self.set_update_rate(1/60)
        self.event_bus = EventBus()
        self.stage = create_stage(self, self.event_bus)
        self.world = self.stage.world
        self.playback_system = PlaybackSystem(self.world, self.event_bus)
        self.render_system = RenderSystem(self.world, self.stage.layout, self)
        self.controller = PlaybackController(
            self.world, self.event_bus, build_lookup_scene(self.stage),
        )
        set_background_color(color.BLACK)

    def on_draw(self):
        self.clear()
        self.render_system.hud_lines = [
            f"Animation Speed: {self.controller.rate:.1f}x",
            "SPACE play!  R reverse  P pause  UP/DOWN speed",
        ]
        self.render_system.process()

    def on_update(self, delta_time: float):
        self.event_bus.emit(EVENT_TICK, dt=delta_time)

    def on_key_press(self, symbol: int, modifiers: int):
        if symbol == key.SPACE:
            self.controller.restart()
        elif symbol == key.R:
            self.controller.reverse()
        elif symbol == key.P:
            state = self.controller.state
            if state is not None and state.playing:
                self.controller.pause()
            else:
                self.controller.play()
        elif symbol == key.UP:
            self.controller.nudge_rate(1)
        elif symbol == key.DOWN:
            self.controller.nudge_rate(-1)

    def on_close(self):
        self.controller.kill()
        super().on_close()


def main():
    configure_logging()
    DataflowWindow()
    LOG.info("Press SPACE to play the lookup.")
    run()

if __name__ == "__main__":
    main()
