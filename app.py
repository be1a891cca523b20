# ============================================
#     PairLink - Main Application
# ============================================

# -------------------------------------------------
#   EVENTLET PATCH (REQUIRED FOR GUNICORN)
# -------------------------------------------------
import eventlet
eventlet.monkey_patch()

# -----------------------------------------
#   ENV VARIABLES (.env / host secrets)
# -----------------------------------------
# Loaded before pairlink.config reads os.environ.
from dotenv import load_dotenv
load_dotenv()

from pairlink.config import PORT, ENV
from pairlink.server import create_app
from pairlink.logger import log_info

# =========================================
#   FLASK + SOCKET.IO (+ expiry sweeper)
# =========================================
app, socketio = create_app()

# =========================================
#   RUN SERVER (DEV / PROD)
# =========================================
if __name__ == "__main__":
    log_info("app", "=" * 50)
    log_info("app", f"Server starting on port {PORT}")
    log_info("app", f"Environment: {ENV}")
    log_info("app", "=" * 50)
    socketio.run(app, host="0.0.0.0", port=PORT)
