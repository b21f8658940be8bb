"""Plugin source and candle data shared by the studyhost benchmarks."""
from __future__ import annotations

SAMPLE_STUDY = '''
class Average(StudyBase):
    def get_ui_config(self):
        return {
            "display_name": "Average",
            "settings_schema": [
                {"key": "enabled", "type": "checkbox", "default": True},
                {"key": "period", "type": "number", "default": 5, "min": 1, "max": 50},
            ],
        }

    def initialize(self, context):
        self.context = context
        self.last = None

    def update_data(self, chart_data, sessions):
        values = study_utils.sma(chart_data.get("1m"), self.settings["period"])
        self.last = values[-1]["value"] if values else None

    def destroy(self):
        self.context = None

__study__ = Average
'''

SAMPLE_CANDLES = {
    "1m": [{"timestamp": t, "close": 100.0 + t % 7} for t in range(50)],
}

__all__ = ["SAMPLE_STUDY", "SAMPLE_CANDLES"]
