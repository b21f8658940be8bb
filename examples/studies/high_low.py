"""Previous-session high and low as horizontal lines on every timeframe."""
from chart import HorizontalLine, LabelPlacement
from study import StudyBase, study_utils


class SessionHighLow(StudyBase):
    def __init__(self):
        self.lines = {}
        super().__init__()

    def get_ui_config(self):
        return {
            "display_name": "Session High/Low",
            "description": "High and low of a previous trading session.",
            "category": "levels",
            "settings_schema": [
                {"key": "enabled", "type": "checkbox", "label": "Enabled", "default": False},
                {
                    "key": "session",
                    "type": "number",
                    "label": "Sessions back",
                    "default": 1,
                    "min": 0,
                    "max": 10,
                },
                {
                    "key": "style",
                    "type": "section",
                    "label": "Style",
                    "controls": [
                        {"key": "high_color", "type": "color", "label": "High", "default": "#2ECC71"},
                        {"key": "low_color", "type": "color", "label": "Low", "default": "#E74C3C"},
                        {
                            "key": "thickness",
                            "type": "range",
                            "label": "Thickness",
                            "default": 1,
                            "min": 1,
                            "max": 5,
                        },
                    ],
                },
            ],
        }

    def initialize(self, context):
        self.context = context
        self.draw(context.chart_data, context.sessions)

    def update_data(self, chart_data, sessions):
        self.draw(chart_data, sessions)

    def on_settings_changed(self):
        if self.context is not None:
            self.draw(self.context.chart_data, self.context.sessions)

    def destroy(self):
        self.clear()
        self.context = None

    def clear(self):
        for timeframe, lines in self.lines.items():
            surface = self.context.surfaces.get(timeframe) if self.context else None
            if surface is not None:
                for line in lines:
                    surface.remove(line)
        self.lines = {}

    def draw(self, chart_data, sessions):
        self.clear()
        session = study_utils.find_session(sessions, self.settings["session"])
        if session is None:
            logger.debug("No session %s yet", self.settings["session"])
            return
        for timeframe, surface in self.context.surfaces.items():
            candles = study_utils.session_candles((chart_data or {}).get(timeframe), session)
            if not candles:
                continue
            high = max(c["high"] for c in candles)
            low = min(c["low"] for c in candles)
            lines = [
                self.make_line(high, self.settings["high_color"], f"H {high:.2f}"),
                self.make_line(low, self.settings["low_color"], f"L {low:.2f}"),
            ]
            for line in lines:
                surface.add(line)
            self.lines[timeframe] = lines

    def make_line(self, price, color, label):
        return HorizontalLine(
            y1=price,
            stroke=color,
            stroke_thickness=self.settings["thickness"],
            show_label=True,
            label_placement=LabelPlacement.AXIS,
            label_value=label,
        )


__study__ = SessionHighLow
