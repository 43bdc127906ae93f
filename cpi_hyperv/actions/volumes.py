"""
Virtual disk (volume) actions.
"""
from typing import Any, Dict

from cpi_hyperv.actions.decoders import JsonDecoder, ScalarDecoder, int_field, text_field, vhd_format
from cpi_hyperv.actions.protocol import Action, ParamKind, optional, required
from cpi_hyperv.actions.script import Assign, Command, Pipeline, Raw, Script, megabytes, quote

MB = 1024 * 1024

SELECT_VHD = Raw("Select-Object Path, @{Name='VhdType';Expression={[int]$_.VhdType}}, Size")
SELECT_PATH = Raw("Select-Object Path")


def controller_kind(value: str) -> str:
    """ide / dvd; anything else is SCSI."""
    lowered = (value or "").strip().lower()
    return lowered if lowered in ("ide", "dvd") else "scsi"


def volume_record(disk: Dict[str, Any]) -> Dict[str, Any]:
    path = text_field(disk, "Path")
    return {
        "id": path,
        "path": path,
        "size_mb": int_field(disk, "Size") // MB,
        "format": vhd_format(disk.get("VhdType")),
    }


def path_result(decoded: Any, fallback_path: str) -> Dict[str, Any]:
    """Path from the re-read descriptor, or the requested path when it could not be parsed."""
    path = text_field(decoded, "Path", default=fallback_path)
    return {"success": True, "id": path, "path": path}


def drive_params():
    return (
        required("worker_name", "Name of the VM"),
        optional("controller_type", "Type of controller (IDE, SCSI, DVD)", ParamKind.STRING, "SCSI"),
        required("disk_path", "Path to the disk"),
    )


class GetVolumes(Action):
    """Disks attached to any VM. ConvertTo-Json yields an object for one disk, an array for more."""

    name = "get_volumes"
    description = "List all virtual disk volumes"
    decoder = JsonDecoder("any")

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(
            Pipeline(
                Command("Get-VM"),
                Command("Get-VMHardDiskDrive"),
                Raw("Where-Object { $_.Path }"),
                Raw("Get-VHD"),
                SELECT_VHD,
                Raw("ConvertTo-Json"),
            )
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "volumes": [volume_record(disk) for disk in decoded]}


class HasVolume(Action):
    name = "has_volume"
    description = "Check if a disk volume exists"
    parameters = (required("disk_path", "Path to the disk"),)
    decoder = ScalarDecoder("bool")

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Command("Test-Path", LiteralPath=args["disk_path"], PathType=Raw("Leaf")))

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "exists": decoded}


class CreateVolume(Action):
    name = "create_volume"
    description = "Create a new disk volume"
    parameters = (
        required("disk_path", "Path for the new disk"),
        required("size_mb", "Size in MB", ParamKind.INTEGER),
    )
    decoder = JsonDecoder("object", fallback=True)

    def script(self, args: Dict[str, Any]) -> Script:
        path = args["disk_path"]
        return Script(
            Pipeline(Command("New-VHD", "Dynamic", Path=path, SizeBytes=megabytes(args["size_mb"])), Raw("Out-Null")),
            Pipeline(Command("Get-VHD", Path=path), SELECT_PATH, Raw("ConvertTo-Json")),
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return path_result(decoded, args["disk_path"])


class DeleteVolume(Action):
    name = "delete_volume"
    description = "Delete a disk volume"
    parameters = (required("disk_path", "Path to the disk"),)

    def script(self, args: Dict[str, Any]) -> Script:
        return Script(Command("Remove-Item", "Force", LiteralPath=args["disk_path"]))


class AttachVolume(Action):
    name = "attach_volume"
    description = "Attach a disk to a VM"
    parameters = drive_params()

    def script(self, args: Dict[str, Any]) -> Script:
        worker, path = args["worker_name"], args["disk_path"]
        kind = controller_kind(args["controller_type"])
        if kind == "dvd":
            return Script(Command("Add-VMDvdDrive", VMName=worker, Path=path))
        return Script(Command("Add-VMHardDiskDrive", VMName=worker, Path=path, ControllerType=Raw(kind.upper())))


class DetachVolume(Action):
    """Removes the drive whose Path matches; no matching drive is not an error."""

    name = "detach_volume"
    description = "Detach a disk from a VM"
    parameters = drive_params()

    def script(self, args: Dict[str, Any]) -> Script:
        if controller_kind(args["controller_type"]) == "dvd":
            getter, remover, flag = "Get-VMDvdDrive", "Remove-VMDvdDrive", "VMDvdDrive"
        else:
            getter, remover, flag = "Get-VMHardDiskDrive", "Remove-VMHardDiskDrive", "VMHardDiskDrive"
        return Script(
            Assign(
                "$drive",
                Pipeline(
                    Command(getter, VMName=args["worker_name"]),
                    Raw("Where-Object { $_.Path -eq " + quote(args["disk_path"]) + " }"),
                ),
            ),
            Raw(f"if ($drive) {{ {remover} -{flag} $drive }}"),
        )


class SnapshotVolume(Action):
    """Differencing child of the source disk."""

    name = "snapshot_volume"
    description = "Clone a disk volume"
    parameters = (
        required("source_volume_path", "Path to the source disk"),
        required("target_volume_path", "Path for the cloned disk"),
    )
    decoder = JsonDecoder("object", fallback=True)

    def script(self, args: Dict[str, Any]) -> Script:
        target = args["target_volume_path"]
        return Script(
            Pipeline(
                Command("New-VHD", "Differencing", Path=target, ParentPath=args["source_volume_path"]),
                Raw("Out-Null"),
            ),
            Pipeline(Command("Get-VHD", Path=target), SELECT_PATH, Raw("ConvertTo-Json")),
        )

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return path_result(decoded, args["target_volume_path"])
