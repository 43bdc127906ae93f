"""
VM checkpoint (snapshot) actions.
"""
from typing import Any, Dict

from cpi_hyperv.actions.decoders import JsonDecoder, ScalarDecoder, text_field
from cpi_hyperv.actions.protocol import Action, required
from cpi_hyperv.actions.script import Command, Pipeline, Raw, Script

SNAPSHOT_PARAMS = (
    required("worker_name", "Name of the VM"),
    required("snapshot_name", "Name of the snapshot"),
)


class CreateSnapshot(Action):
    name = "create_snapshot"
    description = "Create a snapshot of a VM"
    parameters = SNAPSHOT_PARAMS
    decoder = JsonDecoder("object", fallback=True)

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(
            Pipeline(
                Command("Checkpoint-VM", "Passthru", Name=args["worker_name"], SnapshotName=args["snapshot_name"]),
                Raw("Select-Object @{Name='Id';Expression={$_.Id.ToString()}}"),
                Raw("ConvertTo-Json"),
            )
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        if decoded is None:
            return {"success": True, "id": f"{args['worker_name']}-{args['snapshot_name']}"}
        return {"success": True, "id": text_field(decoded, "Id")}


class DeleteSnapshot(Action):
    name = "delete_snapshot"
    description = "Delete a snapshot of a VM"
    parameters = SNAPSHOT_PARAMS

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(
            Command(
                "Remove-VMSnapshot",
                "IncludeAllChildSnapshots",
                VMName=args["worker_name"],
                Name=args["snapshot_name"],
            )
        )


class HasSnapshot(Action):
    name = "has_snapshot"
    description = "Check if a snapshot exists"
    parameters = SNAPSHOT_PARAMS
    decoder = ScalarDecoder("count")

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(
            Pipeline(
                Command(
                    "Get-VMSnapshot",
                    VMName=args["worker_name"],
                    Name=args["snapshot_name"],
                    ErrorAction=Raw("SilentlyContinue"),
                ),
                Raw("Measure-Object"),
                Raw("Select-Object -ExpandProperty Count"),
            )
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "exists": decoded > 0}
