"""
Host-level actions: install check and network attachment.
"""
from typing import Any, Dict

from cpi_hyperv.actions.decoders import JsonDecoder, int_field, text_field
from cpi_hyperv.actions.protocol import Action, required
from cpi_hyperv.actions.script import Command, Pipeline, Raw, Script

INSTALL_PROBE = Raw(
    "[PSCustomObject]@{ "
    "Version = $PSVersionTable.PSVersion.ToString(); "
    "HyperV = @(Get-Command -Module Hyper-V -ErrorAction SilentlyContinue).Count "
    "}"
)


class CheckInstall(Action):
    name = "test_install"
    description = "Test if Hyper-V is properly installed"
    decoder = JsonDecoder("object")

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Pipeline(INSTALL_PROBE, Raw("ConvertTo-Json -Compress")))

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        commands = int_field(decoded, "HyperV")
        return {
            "success": True,
            "version": text_field(decoded, "Version"),
            "hyperv_module": commands > 0,
            "hyperv_commands": commands,
        }


class ConfigureNetworks(Action):
    name = "configure_networks"
    description = "Configure network settings for a VM"
    parameters = (
        required("worker_name", "Name of the VM"),
        required("switch_name", "Name of the virtual switch"),
    )

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(
            Pipeline(
                Command("Get-VMNetworkAdapter", VMName=args["worker_name"]),
                Command("Connect-VMNetworkAdapter", SwitchName=args["switch_name"]),
            )
        )
