# src/sri_injector/plugin.py
import abc
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from sri_injector.controllers.integrity_controller import IntegrityController
from sri_injector.model import IntegrityOptions, IntegrityReport
from sri_injector.utils.config_loader import build_options

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "dist"

BundleLike = Union[Mapping[str, Any], Iterable[str]]


class PluginBase(metaclass=abc.ABCMeta):
    """
    Abstract base class for build-pipeline plugins.

    The host reads `name`, `apply` and `enforce` to decide when to call the
    plugin, then invokes `write_bundle` once the bundle is on disk.
    """
    name: str = ""
    apply: str = "build"
    enforce: Optional[str] = None

    @abc.abstractmethod
    async def write_bundle(self, output_options: Mapping[str, Any], bundle: BundleLike) -> Any:
        """
        Hook called after the bundler has written its output files.

        Args:
            output_options: The host's output options (at least 'dir').
            bundle: Mapping of emitted file names to asset descriptors.
        """
        raise NotImplementedError("Every plugin must implement a 'write_bundle' method.")


class SriPlugin(PluginBase):
    """
    Adds Subresource Integrity attributes to the script and link tags of the
    emitted HTML files, after the build has been written.

    Example:
        plugin = SriPlugin(algorithm="sha384")
        report = plugin.process("dist", ["index.html", "assets/app.js"])
    """
    name = "sri-injector"
    apply = "build"
    enforce = "post"

    def __init__(self, options: Optional[Union[IntegrityOptions, Dict[str, Any]]] = None, **overrides: Any):
        # Options are merged once here; an unknown algorithm fails before any file is touched.
        if isinstance(options, IntegrityOptions) and not overrides:
            self.options = options
        elif isinstance(options, IntegrityOptions):
            self.options = build_options(options.model_dump(), **overrides)
        else:
            self.options = build_options(options, **overrides)

    async def write_bundle(self, output_options: Mapping[str, Any], bundle: BundleLike) -> IntegrityReport:
        output_dir = (output_options or {}).get("dir") or DEFAULT_OUTPUT_DIR
        return await self.run(output_dir, bundle)

    async def run(self, output_dir: Union[str, Path], bundle: BundleLike) -> IntegrityReport:
        logger.debug("%s: processing %s with %s", self.name, output_dir, self.options.algorithm)
        controller = IntegrityController(self.options)
        return await controller.process_build(output_dir, bundle)

    def process(self, output_dir: Union[str, Path], bundle: BundleLike) -> IntegrityReport:
        """Synchronous entry point for hosts without an event loop."""
        return asyncio.run(self.run(output_dir, bundle))
