from __future__ import annotations
import os

# Device mode: "real" talks to the USB spectrometer, "sim" uses the built in simulated device
MODE = os.getenv("SKREADER_MODE", "real").lower()

# USB identification of SEKONIC spectrometers (tested on C-700, C-800, C-7000)
USB_VENDOR_ID = int(os.getenv("SKREADER_USB_VID", "0x0A41"), 0)
USB_PRODUCT_ID = int(os.getenv("SKREADER_USB_PID", "0x7003"), 0)
USB_ENDPOINT_OUT = 0x02
USB_ENDPOINT_IN = 0x81
USB_TIMEOUT_MS = int(os.getenv("SKREADER_USB_TIMEOUT_MS", "1000"))

# Readiness polling
# how long to wait for device to become idle before measuring
WAIT_CONNECT_TIMEOUT_S = float(os.getenv("SKREADER_WAIT_CONNECT_TIMEOUT_S", "5"))
# how long to wait for device to end measuring
WAIT_MEASURE_TIMEOUT_S = float(os.getenv("SKREADER_WAIT_MEASURE_TIMEOUT_S", "20"))
# how often to poll device for status
WAIT_POLL_INTERVAL_S = float(os.getenv("SKREADER_WAIT_POLL_INTERVAL_S", "0.05"))

# Number of status polls the simulated device reports busy after a measurement starts
SIM_BUSY_POLLS = int(os.getenv("SKREADER_SIM_BUSY_POLLS", "3"))

# HTTP front-end
HOST = os.getenv("SKREADER_HOST", "0.0.0.0")
PORT = int(os.getenv("SKREADER_PORT", "8080"))
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("SKREADER_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]
