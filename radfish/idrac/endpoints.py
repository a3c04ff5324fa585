"""Dell iDRAC Redfish endpoints used by the iDRAC client.

Every Redfish path the client touches is defined here so the set of
supported Dell endpoints stays in one place.
"""

SERVICE_ROOT = "/redfish/v1"
SESSIONS = "/redfish/v1/SessionService/Sessions"

SYSTEM = "/redfish/v1/Systems/System.Embedded.1"
SYSTEM_RESET = f"{SYSTEM}/Actions/ComputerSystem.Reset"
PROCESSORS = f"{SYSTEM}/Processors"
MEMORY = f"{SYSTEM}/Memory"
STORAGE = f"{SYSTEM}/Storage"
BOOT_OPTIONS = f"{SYSTEM}/BootOptions"
BIOS = f"{SYSTEM}/Bios"
BIOS_SETTINGS = f"{SYSTEM}/Bios/Settings"

CHASSIS = "/redfish/v1/Chassis/System.Embedded.1"
THERMAL = f"{CHASSIS}/Thermal"
POWER = f"{CHASSIS}/Power"
NETWORK_ADAPTERS = f"{CHASSIS}/NetworkAdapters"

MANAGER = "/redfish/v1/Managers/iDRAC.Embedded.1"
MANAGER_ATTRIBUTES = f"{MANAGER}/Attributes"
MANAGER_ETHERNET = f"{MANAGER}/EthernetInterfaces/NIC.1"
VIRTUAL_MEDIA = f"{MANAGER}/VirtualMedia"
JOBS = f"{MANAGER}/Jobs"
SEL = f"{MANAGER}/LogServices/Sel/Entries"
SEL_CLEAR = f"{MANAGER}/LogServices/Sel/Actions/LogService.ClearLog"
DELETE_JOB_QUEUE = f"{MANAGER}/Oem/Dell/DellJobService/Actions/DellJobService.DeleteJobQueue"
LICENSES = f"{MANAGER}/Oem/Dell/DellLicenses"
SCREENSHOT = "/redfish/v1/Dell/Managers/iDRAC.Embedded.1/DellLCService/Actions/DellLCService.ExportServerScreenShot"

LIFECYCLE_ATTRIBUTES = "/redfish/v1/Managers/LifecycleController.Embedded.1/Attributes"

ACCOUNTS = "/redfish/v1/AccountService/Accounts"


def virtual_media_action(device: str, action: str) -> str:
    """VirtualMedia action path, e.g. ("CD", "InsertMedia")."""
    return f"{VIRTUAL_MEDIA}/{device}/Actions/VirtualMedia.{action}"
