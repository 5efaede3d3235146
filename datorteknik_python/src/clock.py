import sys
from PySide6.QtCore import QCoreApplication, QObject, QTimer, Signal

import common

# Timers need a Qt application object in the thread that owns them.
# The widgets provide one; scripts and tests without a GUI get a core
# application created here on first use.

_app = None

def ensure_application():
    global _app
    app = QCoreApplication.instance()
    if app is None:
        _app = QCoreApplication(sys.argv[:1])
        app = _app
    return app

class StepClock(QObject):
    stepped = Signal(int) # current step after each tick
    finished = Signal(str) # emitted when the run ends by itself

    def __init__(self, simulator, interval):
        ensure_application()
        super().__init__()
        self.sim = simulator
        self.timer = QTimer(self)
        self.timer.setInterval(interval)
        self.timer.timeout.connect(self.tick)

    def start(self):
        common.mode.devlog(f"StepClock.start interval={self.timer.interval()}")
        self.timer.start()

    def stop(self):
        if self.timer.isActive():
            common.mode.devlog("StepClock.stop")
        self.timer.stop()

    def is_active(self):
        return self.timer.isActive()

    def tick(self):
        reason = self.sim.tick()
        self.stepped.emit(self.sim.current_step)
        if reason is not None:
            self.timer.stop()
            self.finished.emit(reason)
