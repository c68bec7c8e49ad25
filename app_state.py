import os
import io
import sys
from PIL import Image, ImageDraw

def get_application_path():
    """Get the path where the application is located, whether running as script or executable"""
    if getattr(sys, 'frozen', False):
        # Running as compiled executable
        application_path = os.path.dirname(sys.executable)
    else:
        # Running as script
        application_path = os.path.dirname(os.path.abspath(__file__))
    return application_path


settings = {}
http_server = None

# --- Favicon Generation ---
FAVICON_REC_BYTES = None
FAVICON_STOP_BYTES = None

def create_favicon(shape, color, size=(32, 32)):
    """Draws a favicon and returns it as ICO bytes."""
    image = Image.new('RGBA', size, (0, 0, 0, 0))
    dc = ImageDraw.Draw(image)
    width, height = size

    if shape == 'circle':
        dc.ellipse((4, 4, width-5, height-5), fill=color)
    else: # square
        dc.rectangle((4, 4, width-5, height-5), fill=color)

    img_byte_arr = io.BytesIO()
    image.save(img_byte_arr, format='ICO', sizes=[(32,32)])
    return img_byte_arr.getvalue()

def generate_favicons():
    """Generates the recording/idle favicons once."""
    global FAVICON_REC_BYTES, FAVICON_STOP_BYTES
    if FAVICON_REC_BYTES is None:
        FAVICON_REC_BYTES = create_favicon('circle', 'red')
        FAVICON_STOP_BYTES = create_favicon('square', 'gray')
