from .backends import BackendManager
from .calibration import calibrate, pixel_to_cm
from .confidence import landmark_score, to_display
from .fusion import estimate_circumference, ellipse_perimeter
from .orchestrator import MeasurementOrchestrator, compute_measurements
