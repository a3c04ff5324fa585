import logging
import unittest
from unittest.mock import MagicMock, patch

from radfish.errors import (
    BmcConnectionError,
    BusyError,
    GenericOperationError,
    MissingIdentifierError,
    NotFoundError,
    TaskTimeoutError,
)
from radfish.idrac.adapter import IdracAdapter
from radfish.idrac.errors import IdracError
from radfish.records import ControllerRecord, CpuRecord, NicRecord, VolumeRecord

STORAGE = "/redfish/v1/Systems/System.Embedded.1/Storage"
CONTROLLER_URI = f"{STORAGE}/RAID.Integrated.1-1"


def _drive(n):
    return {"id": f"Disk.Bay.{n}", "name": f"Physical Disk 0:1:{n}", "odata_id": f"{CONTROLLER_URI}/Drives/Disk.Bay.{n}"}


class IdracAdapterTestCase(unittest.TestCase):
    def setUp(self):
        patcher = patch("radfish.power.time.sleep")
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = MagicMock()
        self.adapter = IdracAdapter("10.0.0.5", "root", "calvin", client=self.client)


class PowerTests(IdracAdapterTestCase):
    def test_power_on_waits_for_on(self):
        self.client.power_on.return_value = True
        self.client.get_power_state.side_effect = [
            IdracError("BMC 10.0.0.5 unreachable"),
            IdracError("GET /redfish/v1/Systems/System.Embedded.1: request timeout after 30s"),
            "On",
        ]

        self.assertTrue(self.adapter.power_on(wait=True))

        self.assertEqual(self.client.get_power_state.call_count, 3)

    def test_power_on_without_wait_does_not_poll(self):
        self.client.power_on.return_value = True

        self.assertTrue(self.adapter.power_on(wait=False))

        self.client.get_power_state.assert_not_called()

    def test_failed_power_command_is_translated_and_not_awaited(self):
        self.client.power_on.side_effect = IdracError("POST /redfish/v1/x failed (500): Server error")

        with self.assertRaises(GenericOperationError) as ctx:
            self.adapter.power_on()

        self.assertTrue(str(ctx.exception).startswith("Power on: "))
        self.client.get_power_state.assert_not_called()

    def test_power_off_waits_for_off(self):
        self.client.power_off.return_value = True
        self.client.get_power_state.side_effect = ["On", "Off"]

        self.assertTrue(self.adapter.power_off())

        self.client.power_off.assert_called_once_with(kind="GracefulShutdown")
        self.assertEqual(self.client.get_power_state.call_count, 2)

    def test_reboot_that_never_goes_down_exhausts_budget(self):
        self.client.power_off.return_value = True
        self.client.get_power_state.return_value = "On"

        self.assertTrue(self.adapter.reboot(wait=True))

        self.assertEqual(self.client.get_power_state.call_count, 60)

    def test_reboot_waits_for_restart_whatever_the_reset_type(self):
        for kind in ("GracefulShutdown", "ForceOff", "On"):
            with self.subTest(kind=kind):
                self.client.reset_mock()
                self.client.power_off.return_value = True
                self.client.get_power_state.side_effect = ["Off", "On"]

                self.assertTrue(self.adapter.reboot(kind=kind, wait=True))

                self.assertEqual(self.client.get_power_state.call_count, 2)

    def test_graceful_restart_falls_back_to_forced(self):
        self.client.power_off.side_effect = IdracError("GracefulRestart not supported in current state")
        self.client.reboot.return_value = True

        self.assertTrue(self.adapter.reboot(wait=False))

        self.client.reboot.assert_called_once_with()

    def test_forced_restart_failure_is_raised(self):
        self.client.power_off.side_effect = IdracError("ForceRestart rejected")

        with self.assertRaises(GenericOperationError):
            self.adapter.reboot(kind="ForceRestart", wait=False)

        self.client.reboot.assert_not_called()

    def test_power_cycle(self):
        self.client.power_off.return_value = True
        self.client.power_on.return_value = True
        self.client.get_power_state.side_effect = ["Off", "On"]

        self.assertTrue(self.adapter.power_cycle())

        self.client.power_off.assert_called_once_with(kind="ForceOff")
        self.sleep.assert_any_call(5)

    def test_poll_settings_can_be_overridden(self):
        adapter = IdracAdapter("10.0.0.6", "root", "calvin", client=self.client, power_poll_interval=0, power_poll_attempts=3)
        self.client.power_on.return_value = True
        self.client.get_power_state.return_value = "Off"

        self.assertTrue(adapter.power_on())

        self.assertEqual(self.client.get_power_state.call_count, 3)
        self.sleep.assert_called_with(0)

    def test_reset_types(self):
        self.assertIn("GracefulRestart", self.adapter.reset_type_allowed())


class SystemInfoTests(IdracAdapterTestCase):
    def setUp(self):
        super().setUp()
        self.client.system_info.return_value = {
            "service_tag": "ABC1234",
            "model": "PowerEdge R640",
            "manufacturer": "Dell Inc.",
            "serial_number": "CN7016381C0123",
            "hostname": None,
            "firmware_version": "2.10.2",
            "idrac_version": "5.10.50.00",
            "is_dell": True,
        }

    def test_system_info_is_canonical(self):
        info = self.adapter.system_info()

        self.assertEqual(info["make"], "Dell")
        self.assertEqual(info["manufacturer"], "Dell")
        self.assertEqual(info["model"], "R640")
        self.assertEqual(info["serial"], "ABC1234")
        self.assertEqual(info["bmc_version"], "5.10.50.00")
        self.assertTrue(info["is_vendor_native"])
        self.assertNotIn("hostname", info)
        self.assertNotIn(None, info.values())

    def test_identity_fields_are_memoized(self):
        self.assertEqual(self.adapter.service_tag(), "ABC1234")
        self.assertEqual(self.adapter.service_tag(), "ABC1234")

        self.assertEqual(self.client.system_info.call_count, 1)

    def test_model_and_serial(self):
        self.assertEqual(self.adapter.model(), "R640")
        self.assertEqual(self.adapter.serial(), "ABC1234")
        self.assertEqual(self.adapter.make(), "Dell")
        self.assertEqual(self.adapter.vendor, "dell")


class InventoryTests(IdracAdapterTestCase):
    def test_cpus_expand_summary(self):
        self.client.cpus.return_value = {"count": 2, "cores": 8, "threads": 16, "model": "Xeon", "status": "OK"}

        cpus = self.adapter.cpus()

        self.assertEqual(len(cpus), 2)
        self.assertIsInstance(cpus[0], CpuRecord)
        self.assertEqual((cpus[1].socket, cpus[1].cores, cpus[1].threads), (2, 4, 8))

    def test_temperatures_empty_when_none_exposed(self):
        self.client.temperatures.return_value = []

        self.assertEqual(self.adapter.temperatures(), [])

    def test_temperatures_empty_when_thermal_missing(self):
        self.client.temperatures.side_effect = IdracError(
            "GET /redfish/v1/Chassis/System.Embedded.1/Thermal not found: Resource missing"
        )

        self.assertEqual(self.adapter.temperatures(), [])

    def test_temperatures_empty_when_client_has_no_sensors(self):
        client = MagicMock(spec=["get_power_state", "fans"])
        adapter = IdracAdapter("10.0.0.7", "root", "calvin", client=client)

        self.assertEqual(adapter.temperatures(), [])

    def test_temperatures_other_failures_are_raised(self):
        self.client.temperatures.side_effect = IdracError("BMC 10.0.0.5 unreachable")

        with self.assertRaises(BmcConnectionError):
            self.adapter.temperatures()

    def test_nics_with_pci_info(self):
        self.client.nics_to_pci.return_value = [
            {
                "id": "NIC.Slot.1",
                "ports": [{"id": "NIC.Slot.1-1", "mac": "AA:BB:CC:DD:EE:FF"}],
                "pci_device": {"id": "59-0", "name": "Broadcom 57414", "@odata.id": "/pcie/59-0"},
            },
            {"id": "NIC.Embedded.1", "ports": [], "pci_device": None},
        ]

        nics = self.adapter.nics_with_pci_info()

        self.assertIsInstance(nics[0], NicRecord)
        self.assertEqual(nics[0].pci_device.name, "Broadcom 57414")
        self.assertEqual(nics[0].pci_device.odata_id, "/pcie/59-0")
        self.assertEqual(nics[0].ports[0].mac, "AA:BB:CC:DD:EE:FF")
        self.assertIsNone(nics[1].pci_device)

    def test_nics_with_ports(self):
        self.client.nics.return_value = [
            {"id": "NIC.Slot.1", "ports": [{"id": "NIC.Slot.1-1", "mac": "AA:BB:CC:DD:EE:FF"}]},
        ]

        nics = self.adapter.nics()

        self.assertEqual(nics[0].ports[0].mac, "AA:BB:CC:DD:EE:FF")

    def test_power_consumption(self):
        self.client.get_power_usage_watts.return_value = 212

        self.assertEqual(self.adapter.power_consumption(), {"consumed_watts": 212})

    def test_unexpected_client_failure_is_generic(self):
        self.client.memory.side_effect = KeyError("CapacityMiB")

        with self.assertRaises(GenericOperationError) as ctx:
            self.adapter.memory()

        self.assertTrue(str(ctx.exception).startswith("Memory inventory failed: "))


class StorageTests(IdracAdapterTestCase):
    def setUp(self):
        super().setUp()
        self.controller_raw = {
            "id": "RAID.Integrated.1-1",
            "name": "PERC H730P Mini",
            "drives": [{"@odata.id": _drive(1)["odata_id"]}],
            "Oem": {"Dell": {"DellControllerBattery": {"PrimaryStatus": "OK"}}},
            "@odata.id": CONTROLLER_URI,
        }
        self.client.controllers.return_value = [self.controller_raw]
        self.client.drives.return_value = [_drive(1), _drive(2), _drive(3)]
        self.client.volumes.return_value = [
            {
                "id": "Disk.Virtual.0",
                "raid_type": "RAID1",
                "drives": [{"@odata.id": _drive(1)["odata_id"]}, {"@odata.id": _drive(3)["odata_id"]}],
                "@odata.id": f"{CONTROLLER_URI}/Volumes/Disk.Virtual.0",
            }
        ]

    def test_controllers_promote_battery_status(self):
        controllers = self.adapter.storage_controllers()

        self.assertIsInstance(controllers[0], ControllerRecord)
        self.assertEqual(controllers[0].battery_status, "OK")
        self.assertEqual(controllers[0].drives[0].odata_id, _drive(1)["odata_id"])

    def test_drives_use_controller_identifier(self):
        controller = self.adapter.storage_controllers()[0]

        drives = self.adapter.drives(controller)

        self.client.drives.assert_called_once_with(CONTROLLER_URI)
        self.assertEqual([drive.id for drive in drives], ["Disk.Bay.1", "Disk.Bay.2", "Disk.Bay.3"])

    def test_drives_without_controller_is_a_caller_error(self):
        with self.assertRaises(MissingIdentifierError):
            self.adapter.drives(None)
        with self.assertRaises(MissingIdentifierError):
            self.adapter.drives({"name": "no reference"})

        self.client.drives.assert_not_called()

    def test_volume_drives(self):
        controller = self.adapter.storage_controllers()[0]
        volume = self.adapter.volumes(controller)[0]

        drives = self.adapter.volume_drives(volume)

        self.assertIsInstance(volume, VolumeRecord)
        self.assertIs(volume.controller, controller)
        self.assertEqual([drive.id for drive in drives], ["Disk.Bay.1", "Disk.Bay.3"])

    def test_volume_drives_requires_volume(self):
        with self.assertRaisesRegex(MissingIdentifierError, "Volume required"):
            self.adapter.volume_drives(None)

    def test_storage_summary(self):
        self.assertEqual(
            self.adapter.storage_summary(),
            {"controller_count": 1, "drive_count": 3, "volume_count": 1},
        )

    def test_storage_summary_counts_failed_controller_as_zero(self):
        self.client.drives.side_effect = IdracError("GET x failed (500): Server error")

        summary = self.adapter.storage_summary()

        self.assertEqual(summary, {"controller_count": 1, "drive_count": 0, "volume_count": 1})

    def test_storage_summary_total_failure(self):
        self.client.controllers.side_effect = IdracError("BMC 10.0.0.5 unreachable")

        self.assertEqual(
            self.adapter.storage_summary(),
            {"controller_count": 0, "drive_count": 0, "volume_count": 0},
        )


class VirtualMediaTests(IdracAdapterTestCase):
    def test_insert_defaults_to_cd(self):
        self.client.insert_virtual_media.return_value = True

        self.assertTrue(self.adapter.insert_virtual_media("http://10.0.0.1/rhel9.iso"))

        self.client.insert_virtual_media.assert_called_once_with("http://10.0.0.1/rhel9.iso", device="CD")

    def test_insert_when_attached_is_busy(self):
        self.client.insert_virtual_media.side_effect = IdracError("Virtual media CD already attached: old.iso")

        with self.assertRaises(BusyError) as ctx:
            self.adapter.insert_virtual_media("http://10.0.0.1/rhel9.iso")

        self.assertEqual(str(ctx.exception), "Virtual media insertion: Virtual media CD already attached: old.iso")
        self.assertEqual(ctx.exception.vendor_message, "Virtual media CD already attached: old.iso")

    def test_eject_missing_slot_is_not_found(self):
        self.client.eject_virtual_media.side_effect = IdracError("POST /x not found: Floppy")

        with self.assertRaises(NotFoundError):
            self.adapter.eject_virtual_media(device="Floppy")

    def test_unmount_all_media_ejects_inserted_slots(self):
        self.client.virtual_media.return_value = [
            {"device": "CD", "inserted": True, "image": "http://10.0.0.1/rhel9.iso"},
            {"device": "RemovableDisk", "inserted": False},
        ]
        self.client.eject_virtual_media.return_value = True

        self.assertTrue(self.adapter.unmount_all_media())

        self.client.eject_virtual_media.assert_called_once_with(device="CD")

    def test_mount_iso_and_boot(self):
        self.client.insert_virtual_media.return_value = True
        self.client.boot_to_cd.return_value = True

        self.assertTrue(self.adapter.mount_iso_and_boot("http://10.0.0.1/rhel9.iso"))

        self.client.boot_to_cd.assert_called_once_with(enabled="Once", mode=None)


class JobTests(IdracAdapterTestCase):
    def test_wait_for_job_timeout(self):
        self.client.wait_for_job.side_effect = IdracError("Job JID_123 timeout after 600s")

        with self.assertRaises(TaskTimeoutError):
            self.adapter.wait_for_job("JID_123")

        self.client.wait_for_job.assert_called_once_with("JID_123", timeout=600)

    def test_jobs_summary(self):
        self.client.jobs.return_value = [
            {"id": "JID_1", "job_state": "Completed"},
            {"id": "JID_2", "job_state": "Running"},
            {"id": "JID_3", "job_state": "Completed"},
        ]

        self.assertEqual(
            self.adapter.jobs_summary(),
            {"total": 3, "by_state": {"Completed": 2, "Running": 1}},
        )


class BiosTests(IdracAdapterTestCase):
    def test_sensible_bios_already_configured(self):
        self.client.bios_error_prompt_disabled.return_value = True
        self.client.bios_hdd_placeholder_enabled.return_value = True
        self.client.bios_os_power_control_enabled.return_value = True

        self.assertEqual(self.adapter.ensure_sensible_bios(), {"changes_made": False})

        self.client.set_bios_attributes.assert_not_called()

    def test_sensible_bios_stages_missing_settings(self):
        self.client.bios_error_prompt_disabled.return_value = False
        self.client.bios_hdd_placeholder_enabled.return_value = True
        self.client.bios_os_power_control_enabled.return_value = True

        result = self.adapter.ensure_sensible_bios()

        self.assertTrue(result["changes_made"])
        self.client.set_bios_attributes.assert_called_once_with({"ErrPrompt": "Disabled", "BootMode": "Uefi"})
        self.client.set_idrac_attributes.assert_called_once_with({"WebServer.1.HostHeaderCheck": "Disabled"})


class VerbosityTests(IdracAdapterTestCase):
    def test_verbosity_is_per_instance(self):
        other = IdracAdapter("10.0.0.6", "root", "calvin", client=MagicMock())

        self.adapter.verbosity = 2

        self.assertEqual(self.adapter.logger.level, logging.DEBUG)
        self.assertEqual(self.client.verbosity, 2)
        self.assertEqual(other.verbosity, 0)
        self.assertNotEqual(other.logger.level, logging.DEBUG)

    def test_debug_respects_level(self):
        self.adapter.verbosity = 1

        with patch.object(self.adapter.logger, "log") as log:
            self.adapter.debug("shown", 1)
            self.adapter.debug("hidden", 2)

        log.assert_called_once_with(logging.INFO, "shown")


if __name__ == "__main__":
    unittest.main()
