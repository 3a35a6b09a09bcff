# main.py

# --- Load .env sebelum settings dibaca ---
from dotenv import load_dotenv
load_dotenv(override=True)
# ----------------------------------------------------

from app import create_app

# Fungsi ini yang akan dipanggil oleh Uvicorn
# Uvicorn akan memanggil factory ini karena 'factory=True' digunakan
app = create_app
