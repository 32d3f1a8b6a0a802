"""
Live camera object detection viewer.

Streams the camera through a detector, overlays boxes and labels, and serves a
browser page where the user can switch cameras, freeze a frame and download the
annotated image plus a JSON record of its detections.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host / --port: Override web.host / web.port
    --profile: Override detection.profile (lightweight|high_accuracy)
"""

import os
import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional

import uvicorn
import yaml

from models.config import Config, PROFILE_MODELS
from ops.logging import setup_logging
from runtime.viewer import Viewer
from web.app import create_app


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_device_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and bool(value)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    devices = camera.get('devices')
    if not isinstance(devices, dict) or not devices:
        return False, "camera.devices must map facing modes (rear, front) to devices"
    for facing, device_id in devices.items():
        if facing not in ('rear', 'front'):
            return False, f"camera.devices has unknown facing mode: {facing}"
        if not _is_device_id(device_id):
            return False, f"camera.devices.{facing} must be a non-negative integer or a path"

    default_facing = camera.get('default_facing', 'rear')
    if default_facing not in ('rear', 'front'):
        return False, "camera.default_facing must be one of: rear, front"

    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera:
        if not isinstance(camera['fps'], int) or camera['fps'] <= 0:
            return False, "camera.fps must be a positive integer"

    if camera.get('rotate', 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Detection
    detection = config.get('detection') or {}
    profile = detection.get('profile', 'lightweight')
    if profile not in PROFILE_MODELS:
        return False, f"detection.profile must be one of: {', '.join(PROFILE_MODELS)}"
    if 'model' in detection and detection['model'] is not None and not isinstance(detection['model'], str):
        return False, "detection.model must be a string"

    min_score = detection.get('min_score', 0.5)
    if not isinstance(min_score, (int, float)) or not (0 <= min_score <= 1):
        return False, "detection.min_score must be between 0 and 1"

    iou = detection.get('iou_threshold', 0.45)
    if not isinstance(iou, (int, float)) or not (0 < iou <= 1):
        return False, "detection.iou_threshold must be between 0 and 1"

    max_det = detection.get('max_detections', 20)
    if not isinstance(max_det, int) or max_det <= 0:
        return False, "detection.max_detections must be a positive integer"

    target_fps = detection.get('target_fps', 30)
    if not isinstance(target_fps, (int, float)) or target_fps <= 0:
        return False, "detection.target_fps must be a positive number"

    # Web
    web = config.get('web') or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be a valid TCP port"
    quality = web.get('jpeg_quality', 80)
    if not isinstance(quality, int) or not (1 <= quality <= 100):
        return False, "web.jpeg_quality must be between 1 and 100"

    # Logging
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live camera object detection viewer')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Bind address (overrides web.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Port (overrides web.port)')
    parser.add_argument('--profile', type=str, default=None, choices=sorted(PROFILE_MODELS),
                        help='Inference profile (overrides detection.profile)')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.profile:
        config.setdefault('detection', {})['profile'] = args.profile
    if args.host or args.port:
        web = config.setdefault('web', {})
        if args.host:
            web['host'] = args.host
        if args.port:
            web['port'] = args.port

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    logging.info("Starting object detection viewer")

    viewer = Viewer(cfg)
    try:
        viewer.start()
        logging.info(f"Web interface on http://{cfg.web.host}:{cfg.web.port}")
        uvicorn.run(
            create_app(viewer),
            host=cfg.web.host,
            port=cfg.web.port,
            log_level="info",
        )
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        viewer.dispose()
        logging.info("Object detection viewer stopped")


if __name__ == "__main__":
    main()
