from .compute_surface import ComputeSurface, DeviceGrid, RenderTarget, TargetReason, TargetStatus
