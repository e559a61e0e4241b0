"""
Main file for the project. Converts a URDF hand description to Simox XML.

Usage:
    python main.py source.urdf_file=/path/to/hand.urdf output.filename=shadowhand.xml
    python main.py source.from_param=true output.dir=/tmp/simox
"""

import logging
import os
import sys
import time

from datetime import timedelta
from pathlib import Path

import hydra

from omegaconf import DictConfig, OmegaConf

from urdf2simox.converter.errors import ConversionError
from urdf2simox.converter.kinematic_model import load_model
from urdf2simox.converter.mesh_resolver import (
    MeshConverter,
    MeshlabConverter,
    MeshReferenceResolver,
)
from urdf2simox.converter.simox_xml import UrdfToSimoxXml
from urdf2simox.utils.logging import LOG_FORMAT, FileLoggingContext
from urdf2simox.utils.package_utils import PackageLocator
from urdf2simox.utils.print_utils import cyan, red

console_logger = logging.getLogger(__name__)


def run_conversion(
    cfg: DictConfig,
    output_dir: Path,
    converter: MeshConverter | None = None,
    param_getter=None,
) -> Path:
    """Load the configured URDF source and write the Simox XML file.

    Args:
        cfg: Resolved configuration (see configurations/config.yaml).
        output_dir: Directory receiving the XML file and meshes/.
        converter: Mesh converter override. Defaults to meshlabserver.
        param_getter: Parameter lookup override for source.from_param.

    Returns:
        Path to the written Simox XML file.

    Raises:
        ConversionError: If any step of the conversion fails.
    """
    start_time = time.time()
    output_dir.mkdir(parents=True, exist_ok=True)

    with FileLoggingContext(log_file_path=output_dir / "conversion.log"):
        console_logger.info(f"Outputs will be saved to: {output_dir}")
        print(cyan("Outputs will be saved to:"), output_dir)

        # Log and save resolved configuration.
        resolved_config_yaml = OmegaConf.to_yaml(cfg)
        console_logger.info("Resolved configuration:\n" + resolved_config_yaml)
        config_file = output_dir / "resolved_config.yaml"
        with open(config_file, "w") as f:
            f.write(resolved_config_yaml)

        model = load_model(
            from_param=cfg.source.from_param,
            urdf_file=cfg.source.urdf_file,
            param_name=cfg.source.param_name,
            param_getter=param_getter,
        )

        if converter is None:
            converter = MeshlabConverter(
                command=cfg.mesh.converter_command,
                failure_marker=cfg.mesh.failure_marker,
            )
        package_overrides = OmegaConf.to_container(cfg.packages, resolve=True) or {}
        mesh_resolver = MeshReferenceResolver(
            package_locator=PackageLocator(overrides=package_overrides),
            converter=converter,
            target_extension=cfg.mesh.target_extension,
            cache_conversions=cfg.mesh.cache_conversions,
        )

        simox_xml = UrdfToSimoxXml(
            model=model,
            mesh_resolver=mesh_resolver,
            include_link_prefixes=cfg.actors.include_link_prefixes,
        )
        output_path = simox_xml.write(
            output_dir=output_dir, filename=cfg.output.filename
        )

        console_logger.info(
            "Conversion completed in "
            f"{timedelta(seconds=time.time() - start_time)}"
        )
        print(cyan("Saved Simox XML to:"), output_path)

    return output_path


@hydra.main(version_base=None, config_path="configurations", config_name="config")
def run(cfg: DictConfig):
    # Configure logging level from LOGLEVEL environment variable.
    log_level = os.environ.get("LOGLEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO), format=LOG_FORMAT
    )

    OmegaConf.resolve(cfg)
    if cfg.output.dir is not None:
        output_dir = Path(cfg.output.dir)
    else:
        hydra_cfg = hydra.core.hydra_config.HydraConfig.get()
        output_dir = Path(hydra_cfg.runtime.output_dir)

    try:
        run_conversion(cfg, output_dir=output_dir)
    except ConversionError as e:
        console_logger.error(f"{type(e).__name__}: {e}")
        print(red(f"Conversion failed: {e}"), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
