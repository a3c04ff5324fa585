"""
Dell iDRAC Redfish Client

Thin requests-based client for one iDRAC. Returns Dell-shaped records
(plain dicts with snake_case keys plus the Redfish "@odata.id" reference) and
raises IdracError with messages the canonical translator can classify:
connection failures mention "unreachable", read timeouts "timeout", HTTP 404
"not found".
"""

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests
import urllib3

from . import endpoints
from .errors import IdracError, extract_error_message

logger = logging.getLogger(__name__)

BOOT_TARGETS = {
    "pxe": "Pxe",
    "disk": "Hdd",
    "cd": "Cd",
    "usb": "Usb",
    "bios_setup": "BiosSetup",
}

HARD_DISK_KEYWORDS = ("Hard", "Disk", "RAID", "NVMe", "SATA", "Drive")


def _health(resource: Dict[str, Any]) -> Optional[str]:
    return (resource.get("Status") or {}).get("Health")


class IdracClient:
    """
    Redfish client for a single Dell iDRAC.

    Uses an X-Auth-Token session by default; ``direct_mode`` sends basic auth
    on every request instead. Connection errors are retried ``retry_count``
    times, ``retry_delay`` seconds apart. HTTP errors are not retried.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = 443,
        use_ssl: bool = True,
        verify_ssl: bool = False,
        direct_mode: bool = False,
        retry_count: int = 3,
        retry_delay: float = 1,
        host_header: Optional[str] = None,
        connect_timeout: int = 5,
        read_timeout: int = 30,
        job_poll_interval: float = 10,
    ):
        self.host = host
        self.username = username
        self.password = password
        self.base_url = f"{'https' if use_ssl else 'http'}://{host}:{port}"
        self.direct_mode = direct_mode
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.host_header = host_header
        self.timeout = (connect_timeout, read_timeout)
        self.job_poll_interval = job_poll_interval
        self.verbosity = 0

        self.session = requests.Session()
        self.session.verify = verify_ssl
        if not verify_ssl:
            urllib3.disable_warnings()

        self.auth_token: Optional[str] = None
        self.session_location: Optional[str] = None

    # Transport

    def _send(self, method: str, path: str, payload: Optional[Dict] = None, auth: bool = True) -> requests.Response:
        """Send one request, retrying connection failures only."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.host_header:
            headers["Host"] = self.host_header
        request_kwargs: Dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if auth:
            if self.direct_mode or not self.auth_token:
                request_kwargs["auth"] = (self.username, self.password)
            else:
                headers["X-Auth-Token"] = self.auth_token
        if payload is not None:
            request_kwargs["json"] = payload

        url = f"{self.base_url}{path}"
        for attempt in range(self.retry_count + 1):
            try:
                if self.verbosity:
                    logger.debug(f"{method} {url}")
                return self.session.request(method, url, **request_kwargs)
            except requests.exceptions.Timeout as e:
                raise IdracError(
                    f"{method} {path}: request timeout after {self.timeout[1]}s ({e})",
                    error_code="TIMEOUT",
                ) from e
            except requests.exceptions.ConnectionError as e:
                if attempt < self.retry_count:
                    logger.warning(
                        f"Connection to {self.host} failed (attempt {attempt + 1}/{self.retry_count + 1}). "
                        f"Retrying in {self.retry_delay} seconds. Error: {e}"
                    )
                    time.sleep(self.retry_delay)
                    continue
                raise IdracError(f"BMC {self.host} unreachable: {e}", error_code="CONNECTION") from e
            except requests.exceptions.RequestException as e:
                raise IdracError(f"{method} {path} failed: {e}") from e

    def _parse(self, response: requests.Response, method: str, path: str) -> Dict[str, Any]:
        status_code = response.status_code
        try:
            data = response.json() if response.text else {}
        except ValueError:
            # Some iDRAC endpoints answer with XML or plain text
            data = {"raw_response": response.text, "content_type": response.headers.get("Content-Type", "")}

        if status_code >= 400:
            message = extract_error_message(data) or response.reason or "Unknown error"
            if status_code == 404:
                raise IdracError(f"{method} {path} not found: {message}", error_code="NOT_FOUND", status_code=404)
            raise IdracError(f"{method} {path} failed ({status_code}): {message}", status_code=status_code)

        if not isinstance(data, dict):
            data = {"data": data}
        location = response.headers.get("Location")
        if location:
            data["_location_header"] = location
        return data

    def login(self) -> bool:
        if self.direct_mode:
            return True
        response = self._send(
            "POST",
            endpoints.SESSIONS,
            payload={"UserName": self.username, "Password": self.password},
            auth=False,
        )
        self._parse(response, "POST", endpoints.SESSIONS)
        token = response.headers.get("X-Auth-Token")
        if not token:
            raise IdracError(f"Session login to {self.host} returned no X-Auth-Token", status_code=response.status_code)
        self.auth_token = token
        self.session_location = response.headers.get("Location")
        return True

    def logout(self) -> bool:
        if not self.auth_token:
            return True
        location = self.session_location or ""
        if location.startswith("http"):
            location = urlparse(location).path
        try:
            if location:
                self._parse(self._send("DELETE", location), "DELETE", location)
        except IdracError as e:
            # Session deletion is best-effort
            logger.debug(f"Session logout failed for {self.host}: {e}")
        self.auth_token = None
        self.session_location = None
        return True

    def authenticated_request(self, method: str, path: str, payload: Optional[Dict] = None) -> Dict[str, Any]:
        """
        Perform a request with session handling and error mapping.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: Redfish path, e.g. /redfish/v1/Systems/System.Embedded.1
            payload: Optional JSON body

        Returns:
            dict: Response JSON (empty dict for empty bodies)

        Raises:
            IdracError: On connection failures and HTTP errors
        """
        if not self.direct_mode and not self.auth_token:
            self.login()
        response = self._send(method, path, payload)
        if response.status_code == 401 and not self.direct_mode:
            logger.info(f"Session for {self.host} expired, logging in again")
            self.auth_token = None
            self.login()
            response = self._send(method, path, payload)
        return self._parse(response, method, path)

    def get(self, path: str) -> Dict[str, Any]:
        return self.authenticated_request("GET", path)

    def post(self, path: str, payload: Optional[Dict] = None) -> Dict[str, Any]:
        return self.authenticated_request("POST", path, payload if payload is not None else {})

    def patch(self, path: str, payload: Dict) -> Dict[str, Any]:
        return self.authenticated_request("PATCH", path, payload)

    def _members(self, collection_path: str) -> List[Dict[str, Any]]:
        """GET a collection and each of its members."""
        collection = self.get(collection_path)
        members = []
        for member_ref in collection.get("Members", []):
            member_uri = member_ref.get("@odata.id")
            if member_uri:
                members.append(self.get(member_uri))
        return members

    # Power

    def get_power_state(self) -> str:
        return self.get(endpoints.SYSTEM).get("PowerState", "Unknown")

    def _reset(self, reset_type: str) -> bool:
        self.post(endpoints.SYSTEM_RESET, {"ResetType": reset_type})
        return True

    def power_on(self) -> bool:
        return self._reset("On")

    def power_off(self, kind: str = "ForceOff") -> bool:
        return self._reset(kind)

    def reboot(self) -> bool:
        return self._reset("ForceRestart")

    def get_power_usage_watts(self) -> Optional[float]:
        power_control = self.get(endpoints.POWER).get("PowerControl") or [{}]
        return power_control[0].get("PowerConsumedWatts")

    # System inventory

    def system_info(self) -> Dict[str, Any]:
        system = self.get(endpoints.SYSTEM)
        manager = self.get(endpoints.MANAGER)
        manufacturer = system.get("Manufacturer") or ""
        return {
            "service_tag": system.get("SKU"),
            "model": system.get("Model"),
            "manufacturer": manufacturer,
            "serial_number": system.get("SerialNumber"),
            "hostname": system.get("HostName"),
            "power_state": system.get("PowerState"),
            "firmware_version": system.get("BiosVersion"),
            "idrac_version": manager.get("FirmwareVersion"),
            "is_dell": "dell" in manufacturer.lower(),
            "Status": system.get("Status", {}),
        }

    def cpus(self) -> Dict[str, Any]:
        """Processor summary: socket count plus aggregate cores/threads."""
        summary = self.get(endpoints.SYSTEM).get("ProcessorSummary", {})
        processors = [p for p in self._members(endpoints.PROCESSORS) if p.get("ProcessorType", "CPU") == "CPU"]
        first = processors[0] if processors else {}
        return {
            "count": summary.get("Count") or len(processors),
            "model": summary.get("Model") or first.get("Model"),
            "manufacturer": first.get("Manufacturer"),
            "cores": sum(p.get("TotalCores") or 0 for p in processors) or None,
            "threads": sum(p.get("TotalThreads") or 0 for p in processors) or None,
            "status": (summary.get("Status") or {}).get("Health"),
        }

    def memory(self) -> List[Dict[str, Any]]:
        modules = []
        for dimm in self._members(endpoints.MEMORY):
            if (dimm.get("Status") or {}).get("State") == "Absent":
                continue
            capacity_mib = dimm.get("CapacityMiB")
            modules.append({
                "id": dimm.get("Id"),
                "name": dimm.get("Name"),
                "capacity_bytes": capacity_mib * 1024 * 1024 if capacity_mib else None,
                "speed_mhz": dimm.get("OperatingSpeedMhz"),
                "manufacturer": dimm.get("Manufacturer"),
                "part_number": dimm.get("PartNumber"),
                "serial": dimm.get("SerialNumber"),
                "slot": dimm.get("DeviceLocator"),
                "type": dimm.get("MemoryDeviceType"),
                "health": _health(dimm),
                "@odata.id": dimm.get("@odata.id"),
            })
        return modules

    def nics(self) -> List[Dict[str, Any]]:
        nics = []
        for adapter in self._members(endpoints.NETWORK_ADAPTERS):
            ports_link = (adapter.get("NetworkPorts") or adapter.get("Ports") or {}).get("@odata.id")
            ports = []
            for port in self._members(ports_link) if ports_link else []:
                addresses = port.get("AssociatedNetworkAddresses") or []
                ports.append({
                    "id": port.get("Id"),
                    "name": port.get("Name") or port.get("Id"),
                    "mac": addresses[0] if addresses else None,
                    "link_status": port.get("LinkStatus"),
                    "speed_mbps": port.get("CurrentLinkSpeedMbps"),
                    "@odata.id": port.get("@odata.id"),
                })
            controllers = adapter.get("Controllers") or [{}]
            nics.append({
                "id": adapter.get("Id"),
                "name": adapter.get("Name") or adapter.get("Id"),
                "manufacturer": adapter.get("Manufacturer"),
                "model": adapter.get("Model"),
                "serial": adapter.get("SerialNumber"),
                "part_number": adapter.get("PartNumber"),
                "firmware_version": controllers[0].get("FirmwarePackageVersion"),
                "health": _health(adapter),
                "ports": ports,
                "@odata.id": adapter.get("@odata.id"),
            })
        return nics

    def fans(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": fan.get("MemberId"),
                "name": fan.get("Name") or fan.get("FanName"),
                "rpm": fan.get("Reading"),
                "status": _health(fan),
                "@odata.id": fan.get("@odata.id"),
            }
            for fan in self.get(endpoints.THERMAL).get("Fans", [])
        ]

    def temperatures(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": sensor.get("MemberId"),
                "name": sensor.get("Name"),
                "reading_celsius": sensor.get("ReadingCelsius"),
                "upper_threshold_critical": sensor.get("UpperThresholdCritical"),
                "status": _health(sensor),
                "@odata.id": sensor.get("@odata.id"),
            }
            for sensor in self.get(endpoints.THERMAL).get("Temperatures", [])
        ]

    def psus(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": psu.get("MemberId"),
                "name": psu.get("Name"),
                "model": psu.get("Model"),
                "serial": psu.get("SerialNumber"),
                "watts": psu.get("PowerCapacityWatts"),
                "firmware_version": psu.get("FirmwareVersion"),
                "status": _health(psu),
                "@odata.id": psu.get("@odata.id"),
            }
            for psu in self.get(endpoints.POWER).get("PowerSupplies", [])
        ]

    def _pci_device_resources(self) -> List[Dict[str, Any]]:
        resources = []
        for link in self.get(endpoints.SYSTEM).get("PCIeDevices", []):
            uri = link.get("@odata.id")
            if uri:
                resources.append(self.get(uri))
        return resources

    @staticmethod
    def _pci_device_record(device: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": device.get("Id"),
            "name": device.get("Name"),
            "manufacturer": device.get("Manufacturer"),
            "device_type": device.get("DeviceType"),
            "firmware_version": device.get("FirmwareVersion"),
            "health": _health(device),
            "@odata.id": device.get("@odata.id"),
        }

    def pci_devices(self) -> List[Dict[str, Any]]:
        return [self._pci_device_record(device) for device in self._pci_device_resources()]

    def _pci_function_targets(self, device: Dict[str, Any]) -> List[str]:
        """
        Ids of the resources a PCIe device's functions link to.

        Dell links each function to its EthernetInterfaces and
        NetworkDeviceFunctions, whose Ids carry the NIC FQDD
        (e.g. "NIC.Slot.1-1-1").
        """
        functions = list((device.get("Links") or {}).get("PCIeFunctions") or [])
        collection = (device.get("PCIeFunctions") or {}).get("@odata.id")
        if collection:
            functions.extend(self.get(collection).get("Members", []))

        targets = []
        seen = set()
        for function_link in functions:
            uri = function_link.get("@odata.id")
            if not uri or uri in seen:
                continue
            seen.add(uri)
            for related in (self.get(uri).get("Links") or {}).values():
                if not isinstance(related, list):
                    continue
                for item in related:
                    if isinstance(item, dict) and item.get("@odata.id"):
                        targets.append(item["@odata.id"].rstrip("/").split("/")[-1])
        return targets

    def nics_to_pci(self) -> List[Dict[str, Any]]:
        """
        NIC inventory with the PCIe device each adapter sits on.

        A NIC ("NIC.Slot.1") belongs to the PCIe device whose functions link
        to that FQDD or to one of its ports ("NIC.Slot.1-1-1"). NICs without a
        match get ``pci_device`` None.
        """
        devices = [
            (self._pci_device_record(device), self._pci_function_targets(device))
            for device in self._pci_device_resources()
        ]
        nics = self.nics()
        for nic in nics:
            nic_id = nic.get("id") or ""
            nic["pci_device"] = None
            if not nic_id:
                continue
            for record, targets in devices:
                if any(target == nic_id or target.startswith(f"{nic_id}-") for target in targets):
                    nic["pci_device"] = record
                    break
        return nics

    def system_health(self) -> Dict[str, Any]:
        system = self.get(endpoints.SYSTEM)
        chassis = self.get(endpoints.CHASSIS)
        processor_summary = system.get("ProcessorSummary", {})
        memory_summary = system.get("MemorySummary", {})
        return {
            "overall_health": _health(system),
            "health_rollup": (system.get("Status") or {}).get("HealthRollup"),
            "power_state": system.get("PowerState"),
            "processor_health": _health(processor_summary),
            "memory_health": _health(memory_summary),
            "chassis_health": _health(chassis),
        }

    # Storage

    def controllers(self) -> List[Dict[str, Any]]:
        controllers = []
        for storage in self._members(endpoints.STORAGE):
            controller = (storage.get("StorageControllers") or [{}])[0]
            drives = storage.get("Drives", [])
            controllers.append({
                "id": storage.get("Id"),
                "name": storage.get("Name"),
                "model": controller.get("Model"),
                "firmware_version": controller.get("FirmwareVersion"),
                "speed_gbps": controller.get("SpeedGbps"),
                "status": _health(storage),
                "drives_count": len(drives),
                "drives": drives,
                "Oem": storage.get("Oem") or controller.get("Oem") or {},
                "@odata.id": storage.get("@odata.id"),
            })
        return controllers

    def drives(self, controller_id: str) -> List[Dict[str, Any]]:
        drives = []
        for link in self.get(controller_id).get("Drives", []):
            uri = link.get("@odata.id")
            if not uri:
                continue
            drive = self.get(uri)
            drives.append({
                "id": drive.get("Id"),
                "name": drive.get("Name"),
                "serial": drive.get("SerialNumber"),
                "model": drive.get("Model"),
                "manufacturer": drive.get("Manufacturer"),
                "media_type": drive.get("MediaType"),
                "protocol": drive.get("Protocol"),
                "capacity_bytes": drive.get("CapacityBytes"),
                "speed_gbps": drive.get("CapableSpeedGbs"),
                "failure_predicted": drive.get("FailurePredicted"),
                "health": _health(drive),
                "odata_id": uri,
            })
        return drives

    def volumes(self, controller_id: str) -> List[Dict[str, Any]]:
        storage = self.get(controller_id)
        volumes_link = (storage.get("Volumes") or {}).get("@odata.id") or f"{controller_id}/Volumes"
        volumes = []
        for volume in self._members(volumes_link):
            volumes.append({
                "id": volume.get("Id"),
                "name": volume.get("Name"),
                "capacity_bytes": volume.get("CapacityBytes"),
                "raid_type": volume.get("RAIDType") or volume.get("VolumeType"),
                "volume_type": volume.get("VolumeType"),
                "encrypted": volume.get("Encrypted"),
                "health": _health(volume),
                "drives": (volume.get("Links") or {}).get("Drives", []),
                "@odata.id": volume.get("@odata.id"),
            })
        return volumes

    # Virtual media

    def virtual_media(self) -> List[Dict[str, Any]]:
        return [
            {
                "device": slot.get("Id"),
                "name": slot.get("Name"),
                "inserted": slot.get("Inserted", False),
                "image": slot.get("Image"),
                "connected_via": slot.get("ConnectedVia"),
                "media_types": slot.get("MediaTypes", []),
                "@odata.id": slot.get("@odata.id"),
            }
            for slot in self._members(endpoints.VIRTUAL_MEDIA)
        ]

    def insert_virtual_media(self, iso_url: str, device: str = "CD") -> bool:
        slot = self.get(f"{endpoints.VIRTUAL_MEDIA}/{device}")
        if slot.get("Inserted"):
            raise IdracError(f"Virtual media {device} already attached: {slot.get('Image')}", error_code="BUSY")
        self.post(
            endpoints.virtual_media_action(device, "InsertMedia"),
            {"Image": iso_url, "Inserted": True, "WriteProtected": True},
        )
        return True

    def eject_virtual_media(self, device: str = "CD") -> bool:
        self.post(endpoints.virtual_media_action(device, "EjectMedia"), {})
        return True

    # Boot

    def boot_config(self) -> Dict[str, Any]:
        boot = self.get(endpoints.SYSTEM).get("Boot", {})
        return {
            "boot_order": boot.get("BootOrder", []),
            "boot_mode": boot.get("BootSourceOverrideMode"),
            "boot_source_override_enabled": boot.get("BootSourceOverrideEnabled"),
            "boot_source_override_target": boot.get("BootSourceOverrideTarget"),
            "uefi_target": boot.get("UefiTargetBootSourceOverride"),
        }

    def boot_options(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": option.get("Id"),
                "name": option.get("Name"),
                "display_name": option.get("DisplayName"),
                "boot_option_reference": option.get("BootOptionReference"),
                "enabled": option.get("BootOptionEnabled"),
                "uefi_device_path": option.get("UefiDevicePath"),
                "@odata.id": option.get("@odata.id"),
            }
            for option in self._members(endpoints.BOOT_OPTIONS)
        ]

    def get_boot_devices(self) -> List[str]:
        boot = self.get(endpoints.SYSTEM).get("Boot", {})
        return boot.get("BootSourceOverrideTarget@Redfish.AllowableValues", [])

    def set_boot_override(self, target: str, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        boot = {"BootSourceOverrideTarget": target, "BootSourceOverrideEnabled": enabled}
        if mode:
            boot["BootSourceOverrideMode"] = mode
        self.patch(endpoints.SYSTEM, {"Boot": boot})
        return True

    def clear_boot_override(self) -> bool:
        self.patch(endpoints.SYSTEM, {"Boot": {"BootSourceOverrideEnabled": "Disabled"}})
        return True

    def set_boot_order(self, devices: List[str]) -> bool:
        self.patch(endpoints.SYSTEM, {"Boot": {"BootOrder": devices}})
        return True

    def boot_to_pxe(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.set_boot_override(BOOT_TARGETS["pxe"], enabled, mode)

    def boot_to_disk(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.set_boot_override(BOOT_TARGETS["disk"], enabled, mode)

    def boot_to_cd(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.set_boot_override(BOOT_TARGETS["cd"], enabled, mode)

    def boot_to_usb(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.set_boot_override(BOOT_TARGETS["usb"], enabled, mode)

    def boot_to_bios_setup(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.set_boot_override(BOOT_TARGETS["bios_setup"], enabled, mode)

    def set_one_time_virtual_media_boot(self) -> bool:
        return self.boot_to_cd(enabled="Once")

    def set_boot_order_hd_first(self) -> bool:
        """Move hard-disk boot options to the front of the boot order."""
        order = self.boot_config()["boot_order"]
        disk_refs = {
            option["boot_option_reference"] or option["id"]
            for option in self.boot_options()
            if any(keyword in (option.get("display_name") or "") for keyword in HARD_DISK_KEYWORDS)
        }
        new_order = [ref for ref in order if ref in disk_refs] + [ref for ref in order if ref not in disk_refs]
        if new_order == order:
            return True
        return self.set_boot_order(new_order)

    # Jobs

    @staticmethod
    def _job_record(job: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": job.get("Id"),
            "name": job.get("Name") or job.get("Message", "Unknown Job"),
            "job_state": job.get("JobState"),
            "percent_complete": job.get("PercentComplete", 0),
            "message": job.get("Message"),
            "job_type": job.get("JobType"),
            "start_time": job.get("StartTime"),
            "end_time": job.get("EndTime"),
            "@odata.id": job.get("@odata.id"),
        }

    def jobs(self) -> List[Dict[str, Any]]:
        return [self._job_record(job) for job in self._members(endpoints.JOBS)]

    def job_status(self, job_id: str) -> Dict[str, Any]:
        return self._job_record(self.get(f"{endpoints.JOBS}/{job_id}"))

    def wait_for_job(self, job_id: str, timeout: int = 600) -> Dict[str, Any]:
        """
        Poll a Dell job (JID_xxx) until it completes, fails or times out.

        Raises:
            IdracError: job failed, or did not finish within ``timeout`` seconds
        """
        start_time = time.time()
        last_percent = -1
        while (time.time() - start_time) < timeout:
            job = self.job_status(job_id)
            state = job["job_state"]
            if job["percent_complete"] != last_percent:
                logger.info(f"Job {job_id} progress: {job['percent_complete']}% - {state} - {job['message']}")
                last_percent = job["percent_complete"]
            if state == "Completed":
                return job
            if state in ("Failed", "CompletedWithErrors"):
                raise IdracError(f"Job {job_id} failed: {job['message']}", error_code=state)
            time.sleep(self.job_poll_interval)
        raise IdracError(f"Job {job_id} timeout after {timeout}s", error_code="TIMEOUT")

    def cancel_job(self, job_id: str) -> bool:
        self.post(endpoints.DELETE_JOB_QUEUE, {"JobID": job_id})
        return True

    def clear_jobs(self, force: bool = False) -> bool:
        self.post(endpoints.DELETE_JOB_QUEUE, {"JobID": "JID_CLEARALL_FORCE" if force else "JID_CLEARALL"})
        return True

    def ensure_lifecycle_controller(self) -> bool:
        """Enable the Lifecycle Controller if it is not already enabled."""
        attributes = self.get(endpoints.LIFECYCLE_ATTRIBUTES).get("Attributes", {})
        if attributes.get("LCAttributes.1.LifecycleControllerState") == "Enabled":
            return True
        logger.info(f"Enabling Lifecycle Controller on {self.host}")
        self.patch(
            endpoints.LIFECYCLE_ATTRIBUTES,
            {"Attributes": {"LCAttributes.1.LifecycleControllerState": "Enabled"}},
        )
        return True

    # BIOS

    def bios_attributes(self) -> Dict[str, Any]:
        return self.get(endpoints.BIOS).get("Attributes", {})

    def set_bios_attributes(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Stage BIOS attributes; they apply on the next reset."""
        return self.patch(
            endpoints.BIOS_SETTINGS,
            {"Attributes": attributes, "@Redfish.SettingsApplyTime": {"ApplyTime": "OnReset"}},
        )

    def set_idrac_attributes(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return self.patch(endpoints.MANAGER_ATTRIBUTES, {"Attributes": attributes})

    def bios_error_prompt_disabled(self) -> bool:
        return self.bios_attributes().get("ErrPrompt") == "Disabled"

    def bios_hdd_placeholder_enabled(self) -> bool:
        return self.bios_attributes().get("HddPlaceholder") == "Enabled"

    def bios_os_power_control_enabled(self) -> bool:
        attributes = self.bios_attributes()
        return (
            attributes.get("ProcCStates") == "Enabled"
            and attributes.get("SysProfile") == "PerfPerWattOptimizedOs"
        )

    def ensure_uefi_boot(self) -> bool:
        """Stage UEFI boot mode. Returns True if a change was staged."""
        if self.bios_attributes().get("BootMode") == "Uefi":
            return False
        self.set_bios_attributes({"BootMode": "Uefi"})
        return True

    # Logs, accounts, sessions

    def sel_log(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": entry.get("Id"),
                "created": entry.get("Created"),
                "severity": entry.get("Severity"),
                "message": entry.get("Message"),
                "message_id": entry.get("MessageId"),
                "sensor_type": entry.get("SensorType"),
                "@odata.id": entry.get("@odata.id"),
            }
            for entry in self.get(endpoints.SEL).get("Members", [])
        ]

    def clear_sel_log(self) -> bool:
        self.post(endpoints.SEL_CLEAR, {})
        return True

    def sel_summary(self, limit: int = 10) -> List[Dict[str, Any]]:
        entries = sorted(self.sel_log(), key=lambda entry: entry.get("created") or "", reverse=True)
        return entries[:limit]

    def _account_slots(self) -> List[Dict[str, Any]]:
        return self._members(endpoints.ACCOUNTS)

    def accounts(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": slot.get("Id"),
                "username": slot.get("UserName"),
                "role": slot.get("RoleId"),
                "enabled": slot.get("Enabled"),
                "locked": slot.get("Locked"),
                "@odata.id": slot.get("@odata.id"),
            }
            for slot in self._account_slots()
            if slot.get("UserName")
        ]

    def _find_account(self, username: str) -> Dict[str, Any]:
        for slot in self._account_slots():
            if slot.get("UserName") == username:
                return slot
        raise IdracError(f"Account {username} not found", error_code="NOT_FOUND")

    def create_account(self, username: str, password: str, role: str = "Administrator") -> bool:
        slots = self._account_slots()
        if any(slot.get("UserName") == username for slot in slots):
            raise IdracError(f"Account name {username} already in use", error_code="BUSY")
        # Slot 1 is reserved by iDRAC
        free = [slot for slot in slots if not slot.get("UserName") and slot.get("Id") != "1"]
        if not free:
            raise IdracError(f"No free account slot on {self.host}")
        self.patch(
            free[0]["@odata.id"],
            {"UserName": username, "Password": password, "RoleId": role, "Enabled": True},
        )
        return True

    def delete_account(self, username: str) -> bool:
        slot = self._find_account(username)
        self.patch(slot["@odata.id"], {"Enabled": False, "RoleId": "None", "UserName": ""})
        return True

    def update_account_password(self, username: str, new_password: str) -> bool:
        slot = self._find_account(username)
        self.patch(slot["@odata.id"], {"Password": new_password})
        return True

    def sessions(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": session.get("Id"),
                "username": session.get("UserName"),
                "@odata.id": session.get("@odata.id"),
            }
            for session in self._members(endpoints.SESSIONS)
        ]

    # BMC

    def service_info(self) -> Dict[str, Any]:
        root = self.get(endpoints.SERVICE_ROOT)
        return {
            "redfish_version": root.get("RedfishVersion"),
            "vendor": root.get("Vendor"),
            "product": root.get("Product"),
            "uuid": root.get("UUID"),
        }

    def redfish_version(self) -> Optional[str]:
        return self.get(endpoints.SERVICE_ROOT).get("RedfishVersion")

    def get_firmware_version(self) -> Optional[str]:
        return self.get(endpoints.MANAGER).get("FirmwareVersion")

    def license_version(self) -> Optional[int]:
        """
        iDRAC generation derived from the firmware version.

        iDRAC 9 firmware is 3.x and later, iDRAC 8 is 2.x, older is iDRAC 7.
        """
        firmware_version = self.get_firmware_version()
        if not firmware_version:
            return None
        major = int(firmware_version.split(".")[0])
        if major >= 3:
            return 9
        if major == 2:
            return 8
        return 7

    def license_info(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": lic.get("Id"),
                "description": lic.get("LicenseDescription"),
                "type": lic.get("LicenseType"),
                "status": _health(lic),
                "@odata.id": lic.get("@odata.id"),
            }
            for lic in self._members(endpoints.LICENSES)
        ]

    def screenshot(self) -> Optional[str]:
        """Base64-encoded PNG of the server console."""
        response = self.post(endpoints.SCREENSHOT, {"FileType": "ServerScreenShot"})
        return response.get("ServerScreenShotFile")

    def get_bmc_network(self) -> Dict[str, Any]:
        interface = self.get(endpoints.MANAGER_ETHERNET)
        ipv4 = (interface.get("IPv4Addresses") or [{}])[0]
        return {
            "ipv4": ipv4.get("Address"),
            "mask": ipv4.get("SubnetMask"),
            "gateway": ipv4.get("Gateway"),
            "dhcp_enabled": ipv4.get("AddressOrigin") == "DHCP",
            "mac": interface.get("MACAddress"),
            "hostname": interface.get("HostName"),
            "fqdn": interface.get("FQDN"),
            "dns_servers": interface.get("NameServers", []),
        }

    def set_bmc_network(
        self,
        ipv4: Optional[str] = None,
        mask: Optional[str] = None,
        gateway: Optional[str] = None,
        dns_primary: Optional[str] = None,
        dns_secondary: Optional[str] = None,
        hostname: Optional[str] = None,
        dhcp: bool = False,
    ) -> bool:
        """
        Apply iDRAC network attributes.

        Changes take effect immediately; changing the address drops the
        current session.
        """
        if dhcp:
            attributes = {"IPv4.1.DHCPEnable": "Enabled", "IPv4.1.DNSFromDHCP": "Enabled"}
        else:
            attributes = {"IPv4.1.DHCPEnable": "Disabled"}
            static = {
                "IPv4.1.Address": ipv4,
                "IPv4.1.Netmask": mask,
                "IPv4.1.Gateway": gateway,
                "IPv4.1.DNS1": dns_primary,
                "IPv4.1.DNS2": dns_secondary,
            }
            attributes.update({key: value for key, value in static.items() if value})
        if hostname:
            attributes["NIC.1.DNSRacName"] = hostname
        self.set_idrac_attributes(attributes)
        return True

    def set_bmc_dhcp(self) -> bool:
        return self.set_bmc_network(dhcp=True)
