from fm_radio_console.gateway.base import DeviceGateway, GatewayError
from fm_radio_console.gateway.rtl_fm import RtlFmGateway, SimulatedGateway

__all__ = ["DeviceGateway", "GatewayError", "RtlFmGateway", "SimulatedGateway"]
