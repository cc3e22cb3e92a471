"""Image service orchestration.

ImageService ties the collaborators together for one request at a time:

    access check -> resolve -> open decoder -> describe
        -> resolve geometry -> plan -> decode -> transform
        -> open encoder -> encode

Every request gets its own decoder, buffer and encoder; nothing mutable
is shared between calls, so one service instance can serve concurrent
workers. Failures never leave partial output in the sink: the encoder
renders into memory and writes once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

from iiifserve.codec.registry import CodecRegistry
from iiifserve.codec.types import NativeImageDescriptor
from iiifserve.config import Settings
from iiifserve.config import settings as default_settings
from iiifserve.core.planner import DecodePlanner, DecodePlannerProtocol
from iiifserve.core.transform import TransformPipeline
from iiifserve.errors import ImageServiceError, ResourceNotFoundError, Result
from iiifserve.geometry import Region, Size
from iiifserve.info.builder import build_image_info
from iiifserve.selector.models import ImageSelector
from iiifserve.selector.resolver import resolve_geometry
from iiifserve.utils.logging import (
    clear_correlation_context,
    get_logger,
    new_request_id,
    set_correlation_context,
)

if TYPE_CHECKING:
    from iiifserve.codec.types import DecodedBuffer, ImageDecoder
    from iiifserve.info.models import ImageInfo
    from iiifserve.resources import AccessPolicy, ImageSource, ResourceResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedImage:
    """Summary of a successfully rendered request.

    Attributes:
        identifier: Image identifier served.
        level: Level the pixels were decoded from.
        decode_region: Region decoded, in that level's coordinates.
        size: Final output dimensions.
        pixel_format: Pillow mode of the encoded pixels.
        media_type: MIME type written to the sink.
        byte_count: Bytes written to the sink.
    """

    identifier: str
    level: int
    decode_region: Region
    size: Size
    pixel_format: str
    media_type: str
    byte_count: int


class ImageService:
    """Serves image info and rendered image requests.

    Example:
        >>> service = ImageService(FileSystemResolver(Path("images")))
        >>> selector = parse_selector("full", "!512,512", "0", "default.jpg")
        >>> with open("out.jpg", "wb") as sink:
        ...     result = service.process_image("page-001", selector, sink)
        >>> result.ok
        True
    """

    __slots__ = (
        "_access_policy",
        "_codecs",
        "_pipeline",
        "_planner",
        "_resolver",
    )

    def __init__(
        self,
        resolver: ResourceResolver,
        access_policy: AccessPolicy | None = None,
        codecs: CodecRegistry | None = None,
        planner: DecodePlannerProtocol | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            resolver: Maps identifiers to image sources.
            access_policy: Optional gate; when absent every identifier
                may be served.
            codecs: Codec registry. Defaults to the built-in decoders with
                the configured JPEG quality.
            planner: Decode planner. Defaults to DecodePlanner with the
                configured maximum decode dimension.
            settings: Settings to use instead of the module singleton.
        """
        cfg = settings or default_settings
        self._resolver = resolver
        self._access_policy = access_policy
        self._codecs = codecs or CodecRegistry(jpeg_quality=cfg.JPEG_QUALITY)
        self._planner = planner or DecodePlanner(
            max_decode_dimension=cfg.MAX_DECODE_DIMENSION
        )
        self._pipeline = TransformPipeline()

    def _open_source(self, identifier: str) -> ImageSource:
        """Apply the access policy, then resolve.

        Denied identifiers are reported exactly like missing ones.
        """
        if self._access_policy is not None and not self._access_policy.is_allowed(
            identifier
        ):
            raise ResourceNotFoundError("Image not found", identifier=identifier)
        return self._resolver.resolve(identifier)

    def describe(self, identifier: str) -> ImageInfo:
        """Build the capability descriptor, raising on failure."""
        source = self._open_source(identifier)
        decoder = self._codecs.open_decoder(source)
        try:
            return build_image_info(NativeImageDescriptor.from_decoder(decoder))
        finally:
            decoder.close()

    def render(
        self,
        identifier: str,
        selector: ImageSelector,
        sink: BinaryIO,
    ) -> RenderedImage:
        """Render a selector into the sink, raising on failure."""
        source = self._open_source(identifier)
        decoder = self._codecs.open_decoder(source)
        try:
            return self._render_with(decoder, identifier, selector, sink)
        finally:
            decoder.close()

    def _render_with(
        self,
        decoder: ImageDecoder,
        identifier: str,
        selector: ImageSelector,
        sink: BinaryIO,
    ) -> RenderedImage:
        native = NativeImageDescriptor.from_decoder(decoder)
        geometry = resolve_geometry(native, selector)
        plan = self._planner.plan(native, geometry, selector)

        buffer: DecodedBuffer = decoder.decode(
            plan.level,
            plan.decode_region,
            plan.decoder_rotation,
            plan.decode_scale_hint,
        )
        try:
            self._pipeline.apply(
                buffer,
                plan.target_size,
                residual_rotation=plan.residual_rotation,
                mirror_horizontally=selector.rotation.mirror,
                quality=selector.quality,
                output_format=selector.format,
            )
            encoder = self._codecs.open_encoder(buffer.pixel_format, selector.format)
            byte_count = encoder.encode(buffer.image, sink)
            return RenderedImage(
                identifier=identifier,
                level=plan.level,
                decode_region=plan.decode_region,
                size=buffer.size,
                pixel_format=buffer.pixel_format,
                media_type=selector.format.media_type,
                byte_count=byte_count,
            )
        finally:
            buffer.release()

    def read_info(self, identifier: str) -> Result[ImageInfo]:
        """Describe an image.

        Returns:
            Result holding the ImageInfo, or the request's error.
        """
        set_correlation_context(request_id=new_request_id(), identifier=identifier)
        try:
            info = self.describe(identifier)
        except ImageServiceError as e:
            logger.warning("Info request failed", kind=e.kind.value, error=e.message)
            return Result.failure(e)
        finally:
            clear_correlation_context()
        return Result.success(info)

    def process_image(
        self,
        identifier: str,
        selector: ImageSelector,
        sink: BinaryIO,
    ) -> Result[RenderedImage]:
        """Render the selected pixels of an image into the sink.

        Returns:
            Result holding a RenderedImage summary, or the request's error.
            On error nothing has been written to the sink.
        """
        set_correlation_context(request_id=new_request_id(), identifier=identifier)
        try:
            rendered = self.render(identifier, selector, sink)
            logger.info(
                "Rendered image",
                selector=selector.canonical(),
                level=rendered.level,
                size=rendered.size.to_tuple(),
                media_type=rendered.media_type,
                byte_count=rendered.byte_count,
            )
        except ImageServiceError as e:
            logger.warning(
                "Image request failed",
                selector=selector.canonical(),
                kind=e.kind.value,
                error=e.message,
            )
            return Result.failure(e)
        finally:
            clear_correlation_context()
        return Result.success(rendered)
