"""Runtime configuration loaded from the environment / ``.env`` file."""
import os

from dotenv import load_dotenv

load_dotenv()

model_name = os.environ.get("model_name")
base_url = os.environ.get("base_url")
api_key = os.environ.get("api_key")

data_dir = os.environ.get("data_dir", "data")
admin_password = os.environ.get("admin_password")
tts_lang = os.environ.get("tts_lang", "en")
log_level = os.environ.get("log_level", "INFO")

# Delay between a known/forgot judgment and the next card becoming visible.
feedback_delay_ms = int(os.environ.get("feedback_delay_ms", 400))
