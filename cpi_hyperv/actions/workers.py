"""
Virtual machine (worker) actions.
States come back as [int] codes and are mapped through VM_STATES; Ids are stringified in-script.
"""
from typing import Any, Dict, Optional

from cpi_hyperv.actions.decoders import CsvDecoder, JsonDecoder, ScalarDecoder, int_field, text_field, vm_state
from cpi_hyperv.actions.protocol import Action, ParamKind, optional, required
from cpi_hyperv.actions.script import Assign, Command, NonFatal, Pipeline, Raw, Script, megabytes, quote
from cpi_hyperv.policies.builtins import MustNotExistPolicy
from cpi_hyperv.settings import ProviderSettings

SELECT_SUMMARY = Raw(
    "Select-Object Name, "
    "@{Name='Id';Expression={$_.Id.ToString()}}, "
    "@{Name='State';Expression={[int]$_.State}}"
)
SELECT_DETAIL = Raw(
    "Select-Object Name, "
    "@{Name='Id';Expression={$_.Id.ToString()}}, "
    "@{Name='State';Expression={[int]$_.State}}, "
    "@{Name='memory_mb';Expression={$_.MemoryStartup / 1MB}}, "
    "@{Name='cpu_count';Expression={$_.ProcessorCount}}, "
    "@{Name='generation';Expression={$_.Generation}}"
)
SILENT = Raw("SilentlyContinue")


def worker_param(description: str = "Name of the VM"):
    return required("worker_name", description)


def count_workers(args: Dict[str, Any]) -> Script:
    return Script(
        Pipeline(
            Command("Get-VM", Name=args["worker_name"], ErrorAction=SILENT),
            Raw("Measure-Object"),
            Raw("Select-Object -ExpandProperty Count"),
        )
    )


class ListWorkers(Action):
    name = "list_workers"
    description = "List all virtual machines"
    decoder = CsvDecoder(("name", "id", "state"), converters={"state": vm_state})

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Pipeline(Command("Get-VM"), SELECT_SUMMARY, Command("ConvertTo-Csv", "NoTypeInformation")))

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "workers": decoded}


class CreateWorker(Action):
    """New-VM, then processor count, then re-read the descriptor; one script."""

    name = "create_worker"
    description = "Create a new virtual machine"
    decoder = JsonDecoder("object")

    def __init__(self, settings: Optional[ProviderSettings] = None):
        settings = settings or ProviderSettings()
        self.parameters = (
            worker_param("Name of the VM to create"),
            optional("memory_mb", "Memory in MB", ParamKind.INTEGER, settings.default_memory_mb),
            optional("cpu_count", "Number of CPUs", ParamKind.INTEGER, settings.default_cpu_count),
            optional("generation", "VM generation (1 or 2)", ParamKind.INTEGER, settings.default_generation),
            optional("switch_name", "Network switch to connect to", ParamKind.STRING, settings.default_switch_name),
        )
        self.prechecks = (
            MustNotExistPolicy("VM", "worker_name", count_workers, failure_mode=settings.precheck_failure),
        )

    def script(self, args: Dict[str, Any]) -> Script:
        name = args["worker_name"]
        return Script(
            Pipeline(
                Command(
                    "New-VM",
                    Name=name,
                    MemoryStartupBytes=megabytes(args["memory_mb"]),
                    Generation=args["generation"],
                    SwitchName=args["switch_name"],
                ),
                Raw("Out-Null"),
            ),
            Command("Set-VM", Name=name, ProcessorCount=args["cpu_count"]),
            Pipeline(Command("Get-VM", Name=name), SELECT_SUMMARY, Raw("ConvertTo-Json")),
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "id": text_field(decoded, "Id"), "name": args["worker_name"]}


class DeleteWorker(Action):
    name = "delete_worker"
    description = "Delete a virtual machine"
    parameters = (worker_param("Name of the VM to delete"),)

    def script(self, args: Dict[str, Any]) -> Script:
        name = args["worker_name"]
        return Script(
            NonFatal(Command("Stop-VM", "TurnOff", "Force", Name=name)),
            Command("Remove-VM", "Force", Name=name),
        )


class GetWorker(Action):
    name = "get_worker"
    description = "Get information about a virtual machine"
    parameters = (worker_param(),)
    decoder = JsonDecoder("object")

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Pipeline(Command("Get-VM", Name=args["worker_name"]), SELECT_DETAIL, Raw("ConvertTo-Json")))

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "success": True,
            "vm": {
                "name": text_field(decoded, "Name"),
                "id": text_field(decoded, "Id"),
                "state": vm_state(decoded.get("State")),
                "memory_mb": int_field(decoded, "memory_mb"),
                "cpu_count": int_field(decoded, "cpu_count"),
                "generation": int_field(decoded, "generation"),
            },
        }


class HasWorker(Action):
    name = "has_worker"
    description = "Check if a virtual machine exists"
    parameters = (worker_param(),)
    decoder = ScalarDecoder("count")

    def script(self, args: Dict[str, Any]) -> Script:
        return count_workers(args)

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "exists": decoded > 0}


class StartWorker(Action):
    name = "start_worker"
    description = "Start a virtual machine"
    parameters = (worker_param("Name of the VM to start"),)

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Command("Start-VM", Name=args["worker_name"]))

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "started": args["worker_name"]}


class RebootWorker(Action):
    name = "reboot_worker"
    description = "Reboot a VM"
    parameters = (worker_param(),)

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Command("Restart-VM", "Force", Name=args["worker_name"]))


class SetWorkerMetadata(Action):
    """Hyper-V has no metadata store; key=value lines are appended to the VM Notes."""

    name = "set_worker_metadata"
    description = "Set metadata for a VM"
    parameters = (
        worker_param(),
        required("key", "Metadata key"),
        required("value", "Metadata value"),
    )

    def script(self, args: Dict[str, Any]) -> Script:
        entry = f"{args['key']}={args['value']}"
        return Script(
            Assign("$vm", Command("Get-VM", Name=args["worker_name"])),
            Assign("$entry", Raw(quote(entry))),
            Assign("$notes", Raw('if ($vm.Notes) { $vm.Notes + "`n" + $entry } else { $entry }')),
            Command("Set-VM", VM=Raw("$vm"), Notes=Raw("$notes")),
        )
