"""
Dell iDRAC Adapter

Canonical radfish interface on top of the iDRAC vendor client. Every call
that reaches the client goes through the error translator, inventory comes
back as canonical records, and power operations can wait for the server to
actually reach the requested state.
"""

from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from ..base import BaseAdapter
from ..errors import ErrorKind, MissingIdentifierError, classify_message, translated
from ..identifiers import drives_for_volume, extract_identifier
from ..power import RESET_TYPES, PowerConvergence, PowerTarget
from ..records import (
    ComponentRecord,
    ControllerRecord,
    NicRecord,
    SystemInfo,
    VolumeRecord,
    expand_cpu_summary,
    normalize,
    normalize_many,
    promote_field,
    strip_model_prefix,
)
from ..registry import register_adapter
from .client import IdracClient
from .errors import IdracError

BATTERY_PATH = ("Oem", "Dell", "DellControllerBattery")
BATTERY_STATUS_KEYS = ("PrimaryStatus", "RAIDState")

SENSIBLE_BIOS_ATTRIBUTES = {
    "error_prompt": {"ErrPrompt": "Disabled"},
    "hdd_placeholder": {"HddPlaceholder": "Enabled"},
    "os_power_control": {
        "ProcCStates": "Enabled",
        "SysProfile": "PerfPerWattOptimizedOs",
        "ProcPwrPerf": "OsDbpm",
    },
}


class IdracAdapter(BaseAdapter):
    """
    radfish adapter for Dell iDRAC BMCs.

    Args:
        host: iDRAC address
        username: iDRAC username
        password: iDRAC password
        client: Pre-built vendor client (defaults to an IdracClient for host)
        **options: Overrides for radfish.config.Settings fields (port,
                   verify_ssl, retry_count, power_poll_interval, ...) and
                   ``verbosity``
    """

    vendor_name = "dell"
    vendor_errors = (IdracError,)

    def __init__(self, host: str, username: str, password: str, client: Any = None, **options):
        super().__init__(host, username, password, **options)
        self.idrac_client = client or IdracClient(
            host=host,
            username=username,
            password=password,
            port=self.option("port"),
            use_ssl=self.option("use_ssl"),
            verify_ssl=self.option("verify_ssl"),
            direct_mode=self.option("direct_mode"),
            retry_count=self.option("retry_count"),
            retry_delay=self.option("retry_delay"),
            host_header=options.get("host_header"),
            connect_timeout=self.option("connect_timeout"),
            read_timeout=self.option("read_timeout"),
            job_poll_interval=self.option("job_poll_interval"),
        )
        self.idrac_client.verbosity = self.verbosity
        self.power = PowerConvergence(
            self.power_status,
            logger=self.logger,
            interval=self.option("power_poll_interval"),
            attempts=self.option("power_poll_attempts"),
            reboot_attempts=self.option("reboot_poll_attempts"),
            settle=self.option("power_cycle_settle"),
        )

    @property
    def verbosity(self) -> int:
        return self._verbosity

    @verbosity.setter
    def verbosity(self, value: int):
        BaseAdapter.verbosity.fset(self, value)
        client = getattr(self, "idrac_client", None)
        if client is not None:
            client.verbosity = self._verbosity

    # Session management

    @translated("Login")
    def login(self) -> bool:
        return self.idrac_client.login()

    @translated("Logout")
    def logout(self) -> bool:
        return self.idrac_client.logout()

    @translated("Request")
    def authenticated_request(self, method: str, path: str, payload: Optional[Dict] = None) -> Dict[str, Any]:
        return self.idrac_client.authenticated_request(method, path, payload)

    # Power management

    @translated("Power status")
    def power_status(self) -> str:
        return self.idrac_client.get_power_state()

    @translated("Power on")
    def power_on(self, wait: bool = True) -> bool:
        result = self.idrac_client.power_on()
        if wait and result:
            self.power.converge("On")
        return result

    @translated("Power off")
    def power_off(self, kind: str = "GracefulShutdown", wait: bool = True) -> bool:
        result = self.idrac_client.power_off(kind=kind)
        if wait and result:
            self.power.converge(kind, fallback=(PowerTarget.OFF,))
        return result

    @translated("Reboot")
    def reboot(self, kind: str = "GracefulRestart", wait: bool = True) -> bool:
        try:
            result = self.idrac_client.power_off(kind=kind)
        except Exception as e:
            if kind != "GracefulRestart":
                raise
            self.debug(f"Graceful restart failed ({e}), using force restart", 1)
            result = self.idrac_client.reboot()

        if wait and result:
            self.power.wait_for_restart()
        return result

    def power_cycle(self, wait: bool = True) -> bool:
        self.power_off(kind="ForceOff", wait=wait)
        self.power.settle()
        return self.power_on(wait=wait)

    def reset_type_allowed(self) -> List[str]:
        # iDRAC does not expose this directly
        return list(RESET_TYPES)

    @translated("Power consumption")
    def power_consumption(self) -> Dict[str, Any]:
        return {"consumed_watts": self.idrac_client.get_power_usage_watts()}

    @translated("Power consumption")
    def power_consumption_watts(self) -> Optional[float]:
        return self.idrac_client.get_power_usage_watts()

    # System information

    @translated("System info")
    def system_info(self) -> Dict[str, Any]:
        info = self.idrac_client.system_info()
        # Dell reports "Dell Inc."; canonical make is "Dell"
        return SystemInfo(
            service_tag=info.get("service_tag"),
            manufacturer="Dell",
            make="Dell",
            model=strip_model_prefix(info.get("model")),
            serial=info.get("service_tag"),  # Dell uses the service tag as serial
            serial_number=info.get("service_tag"),
            firmware_version=info.get("firmware_version"),
            bmc_version=info.get("idrac_version"),
            is_vendor_native=info.get("is_dell"),
        ).to_dict()

    @translated("Service tag")
    def service_tag(self) -> Optional[str]:
        return self.memoized("service_tag", lambda: self.idrac_client.system_info().get("service_tag"))

    def make(self) -> str:
        return "Dell"

    @translated("Model")
    def model(self) -> Optional[str]:
        return self.memoized("model", lambda: strip_model_prefix(self.idrac_client.system_info().get("model")))

    @translated("Serial")
    def serial(self) -> Optional[str]:
        return self.memoized("serial", lambda: self.idrac_client.system_info().get("service_tag"))

    @translated("CPU inventory")
    def cpus(self) -> List[ComponentRecord]:
        # Dell reports a processor summary; sockets are assumed identical
        return expand_cpu_summary(self.idrac_client.cpus())

    @translated("Memory inventory")
    def memory(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.memory())

    @translated("NIC inventory")
    def nics(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.nics(), NicRecord, nested={"ports": ComponentRecord})

    @translated("Fan inventory")
    def fans(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.fans())

    @translated("Temperature sensors")
    def temperatures(self) -> List[ComponentRecord]:
        """Temperature sensors; empty when the BMC exposes none."""
        query = getattr(self.idrac_client, "temperatures", None)
        if query is None:
            return []
        try:
            sensors = query()
        except IdracError as e:
            if classify_message(e.message) != ErrorKind.NOT_FOUND:
                raise
            self.debug(f"No temperature sensors exposed: {e.message}", 2)
            return []
        return normalize_many(sensors)

    @translated("PSU inventory")
    def psus(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.psus())

    @translated("PCI inventory")
    def pci_devices(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.pci_devices())

    @translated("NIC PCI inventory")
    def nics_with_pci_info(self) -> List[NicRecord]:
        records = []
        for nic in self.idrac_client.nics_to_pci():
            if not isinstance(nic, Mapping):
                continue
            raw = dict(nic)
            device = raw.pop("pci_device", None)
            record = normalize(raw, NicRecord, nested={"ports": ComponentRecord})
            if isinstance(device, Mapping):
                record.pci_device = normalize(device)
            records.append(record)
        return records

    @translated("System health")
    def system_health(self) -> ComponentRecord:
        return normalize(self.idrac_client.system_health())

    # Storage

    @translated("Storage controllers")
    def storage_controllers(self) -> List[ComponentRecord]:
        controllers = [
            promote_field(controller, "battery_status", BATTERY_PATH, BATTERY_STATUS_KEYS)
            for controller in self.idrac_client.controllers()
            if isinstance(controller, Mapping)
        ]
        return normalize_many(controllers, ControllerRecord, nested={"drives": ComponentRecord})

    @translated("List drives")
    def drives(self, controller: Any) -> List[ComponentRecord]:
        controller_id = extract_identifier(controller)
        return normalize_many(self.idrac_client.drives(controller_id))

    @translated("List volumes")
    def volumes(self, controller: Any) -> List[ComponentRecord]:
        controller_id = extract_identifier(controller)
        volumes = normalize_many(self.idrac_client.volumes(controller_id), VolumeRecord)
        for volume in volumes:
            volume.controller = controller
        return volumes

    @translated("Volume drives")
    def volume_drives(self, volume: Any) -> List[ComponentRecord]:
        """Physical drives backing ``volume`` (as returned by volumes())."""
        if volume is None:
            raise MissingIdentifierError("Volume required")
        controller_id = extract_identifier(volume.get("controller"))
        drives = self.idrac_client.drives(controller_id)
        return normalize_many(drives_for_volume(volume, drives))

    def storage_summary(self) -> Dict[str, int]:
        """
        Controller, drive and volume counts.

        Best-effort: a controller whose drives or volumes cannot be read
        counts as zero, and a failure to list controllers yields all zeros.
        """
        try:
            controllers = self.idrac_client.controllers()
            total_drives = 0
            total_volumes = 0
            for controller in controllers:
                try:
                    controller_id = extract_identifier(controller)
                except MissingIdentifierError:
                    continue
                try:
                    total_drives += len(self.idrac_client.drives(controller_id))
                except Exception as e:
                    self.logger.warning(f"Failed to count drives on {controller_id}: {e}")
                try:
                    total_volumes += len(self.idrac_client.volumes(controller_id))
                except Exception as e:
                    self.logger.warning(f"Failed to count volumes on {controller_id}: {e}")
            return {
                "controller_count": len(controllers),
                "drive_count": total_drives,
                "volume_count": total_volumes,
            }
        except Exception as e:
            self.logger.error(f"Error fetching storage summary: {e}")
            return {"controller_count": 0, "drive_count": 0, "volume_count": 0}

    # Virtual media

    @translated("Virtual media status")
    def virtual_media(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.virtual_media())

    def virtual_media_status(self) -> List[ComponentRecord]:
        return self.virtual_media()

    @translated("Virtual media insertion")
    def insert_virtual_media(self, iso_url: str, device: Optional[str] = None) -> bool:
        return self.idrac_client.insert_virtual_media(iso_url, device=device or "CD")

    @translated("Virtual media eject")
    def eject_virtual_media(self, device: str = "CD") -> bool:
        return self.idrac_client.eject_virtual_media(device=device)

    def mount_iso_and_boot(self, iso_url: str, device: str = "CD") -> bool:
        self.insert_virtual_media(iso_url, device=device)
        return self.boot_to_cd()

    def unmount_all_media(self) -> bool:
        success = True
        for media in self.virtual_media():
            if media.get("inserted"):
                success = self.eject_virtual_media(device=media.get("device")) and success
        return success

    # Boot configuration

    @translated("Boot config")
    def boot_config(self) -> Dict[str, Any]:
        return self.idrac_client.boot_config()

    def boot(self) -> Dict[str, Any]:
        return self.boot_config()

    @translated("Boot options")
    def boot_options(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.boot_options())

    @translated("Boot override")
    def set_boot_override(self, target: str, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.set_boot_override(target, enabled=enabled, mode=mode)

    @translated("Clear boot override")
    def clear_boot_override(self) -> bool:
        return self.idrac_client.clear_boot_override()

    @translated("Boot order")
    def set_boot_order(self, devices: List[str]) -> bool:
        return self.idrac_client.set_boot_order(devices)

    @translated("Boot devices")
    def get_boot_devices(self) -> List[str]:
        return self.idrac_client.get_boot_devices()

    @translated("Boot to PXE")
    def boot_to_pxe(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.boot_to_pxe(enabled=enabled, mode=mode)

    @translated("Boot to disk")
    def boot_to_disk(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.boot_to_disk(enabled=enabled, mode=mode)

    @translated("Boot to CD")
    def boot_to_cd(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.boot_to_cd(enabled=enabled, mode=mode)

    @translated("Boot to USB")
    def boot_to_usb(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.boot_to_usb(enabled=enabled, mode=mode)

    @translated("Boot to BIOS setup")
    def boot_to_bios_setup(self, enabled: str = "Once", mode: Optional[str] = None) -> bool:
        return self.idrac_client.boot_to_bios_setup(enabled=enabled, mode=mode)

    @translated("One-time virtual media boot")
    def set_one_time_boot_to_virtual_media(self) -> bool:
        return self.idrac_client.set_one_time_virtual_media_boot()

    @translated("Boot order")
    def set_boot_order_hd_first(self) -> bool:
        return self.idrac_client.set_boot_order_hd_first()

    # Jobs

    @translated("List jobs")
    def jobs(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.jobs())

    @translated("Job status")
    def job_status(self, job_id: str) -> Dict[str, Any]:
        return self.idrac_client.job_status(job_id)

    @translated("Wait for job")
    def wait_for_job(self, job_id: str, timeout: Optional[int] = None) -> Dict[str, Any]:
        return self.idrac_client.wait_for_job(job_id, timeout=timeout or self.option("job_timeout"))

    @translated("Cancel job")
    def cancel_job(self, job_id: str) -> bool:
        return self.idrac_client.cancel_job(job_id)

    @translated("Clear jobs")
    def clear_jobs(self, force: bool = False) -> bool:
        return self.idrac_client.clear_jobs(force=force)

    def jobs_summary(self) -> Dict[str, Any]:
        jobs = self.jobs()
        return {
            "total": len(jobs),
            "by_state": dict(Counter(job.get("job_state") or "Unknown" for job in jobs)),
        }

    # BMC / BIOS configuration

    @translated("Lifecycle Controller")
    def ensure_vendor_specific_bmc_ready(self) -> bool:
        return self.idrac_client.ensure_lifecycle_controller()

    @translated("BIOS check")
    def bios_error_prompt_disabled(self) -> bool:
        return self.idrac_client.bios_error_prompt_disabled()

    @translated("BIOS check")
    def bios_hdd_placeholder_enabled(self) -> bool:
        return self.idrac_client.bios_hdd_placeholder_enabled()

    @translated("BIOS check")
    def bios_os_power_control_enabled(self) -> bool:
        return self.idrac_client.bios_os_power_control_enabled()

    @translated("UEFI boot mode")
    def ensure_uefi_boot(self) -> bool:
        return self.idrac_client.ensure_uefi_boot()

    @translated("BIOS configuration")
    def ensure_sensible_bios(self) -> Dict[str, Any]:
        """
        Stage the BIOS settings radfish expects on a managed server.

        Error prompts off, HDD placeholder on, OS-controlled power management,
        UEFI boot mode. Also disables the iDRAC host header check. Nothing is
        written when the three checks already pass.
        """
        checks = {
            "error_prompt": self.idrac_client.bios_error_prompt_disabled(),
            "hdd_placeholder": self.idrac_client.bios_hdd_placeholder_enabled(),
            "os_power_control": self.idrac_client.bios_os_power_control_enabled(),
        }
        if all(checks.values()):
            self.logger.info("BIOS settings already configured correctly")
            return {"changes_made": False}

        attributes: Dict[str, Any] = {}
        for check, passed in checks.items():
            if not passed:
                attributes.update(SENSIBLE_BIOS_ATTRIBUTES[check])
        attributes["BootMode"] = "Uefi"

        self.logger.info(f"Configuring BIOS settings: {sorted(attributes)}")
        self.idrac_client.set_bios_attributes(attributes)
        self.idrac_client.set_idrac_attributes({"WebServer.1.HostHeaderCheck": "Disabled"})
        return {"changes_made": True, "attributes": attributes}

    # Logs, accounts, sessions

    @translated("SEL")
    def sel_log(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.sel_log())

    @translated("Clear SEL")
    def clear_sel_log(self) -> bool:
        return self.idrac_client.clear_sel_log()

    @translated("SEL")
    def sel_summary(self, limit: int = 10) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.sel_summary(limit=limit))

    @translated("List accounts")
    def accounts(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.accounts())

    @translated("Create account")
    def create_account(self, username: str, password: str, role: str = "Administrator") -> bool:
        return self.idrac_client.create_account(username=username, password=password, role=role)

    @translated("Delete account")
    def delete_account(self, username: str) -> bool:
        return self.idrac_client.delete_account(username)

    @translated("Update account password")
    def update_account_password(self, username: str, new_password: str) -> bool:
        return self.idrac_client.update_account_password(username=username, new_password=new_password)

    @translated("List sessions")
    def sessions(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.sessions())

    @translated("Service info")
    def service_info(self) -> Dict[str, Any]:
        return self.idrac_client.service_info()

    @translated("Firmware version")
    def get_firmware_version(self) -> Optional[str]:
        return self.idrac_client.get_firmware_version()

    @translated("BMC info")
    def bmc_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "firmware_version": self.idrac_client.get_firmware_version(),
            "redfish_version": self.idrac_client.redfish_version(),
        }
        generation = self.idrac_client.license_version()
        info["license_version"] = str(generation) if generation is not None else None

        network = self.idrac_client.get_bmc_network()
        if isinstance(network, Mapping):
            info["mac_address"] = network.get("mac")
            info["ip_address"] = network.get("ipv4")
            info["hostname"] = network.get("hostname") or network.get("fqdn")

        system = self.idrac_client.system_info()
        if isinstance(system, Mapping):
            status = system.get("Status") or {}
            info["health"] = status.get("Health") or status.get("HealthRollup")
        return info

    @translated("Screenshot")
    def screenshot(self) -> Optional[str]:
        return self.idrac_client.screenshot()

    @translated("License info")
    def license_info(self) -> List[ComponentRecord]:
        return normalize_many(self.idrac_client.license_info())

    # Network management

    @translated("BMC network")
    def get_bmc_network(self) -> Dict[str, Any]:
        return self.idrac_client.get_bmc_network()

    @translated("BMC network")
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
        return self.idrac_client.set_bmc_network(
            ipv4=ipv4,
            mask=mask,
            gateway=gateway,
            dns_primary=dns_primary,
            dns_secondary=dns_secondary,
            hostname=hostname,
            dhcp=dhcp,
        )

    @translated("BMC network")
    def set_bmc_dhcp(self) -> bool:
        return self.idrac_client.set_bmc_dhcp()


register_adapter("dell", IdracAdapter)
register_adapter("idrac", IdracAdapter)
