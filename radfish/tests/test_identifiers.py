import unittest

from radfish.errors import MissingIdentifierError, RadfishError
from radfish.identifiers import drive_identities, drives_for_volume, extract_identifier, volume_drive_refs
from radfish.records import ComponentRecord, VolumeRecord, normalize

CONTROLLER_URI = "/redfish/v1/Systems/System.Embedded.1/Storage/RAID.Integrated.1-1"


class ExtractIdentifierTests(unittest.TestCase):
    def test_reads_reference_from_raw_data_first(self):
        record = normalize({"Id": "RAID.Integrated.1-1", "@odata.id": CONTROLLER_URI})

        self.assertEqual(extract_identifier(record), CONTROLLER_URI)

    def test_reads_reference_from_raw_map(self):
        self.assertEqual(extract_identifier({"@odata.id": CONTROLLER_URI}), CONTROLLER_URI)
        self.assertEqual(extract_identifier({"odata_id": CONTROLLER_URI}), CONTROLLER_URI)

    def test_reads_normalized_reference_field(self):
        record = ComponentRecord(odata_id=CONTROLLER_URI)

        self.assertEqual(extract_identifier(record), CONTROLLER_URI)

    def test_falls_back_to_record_id(self):
        self.assertEqual(extract_identifier(ComponentRecord(id="RAID.Integrated.1-1")), "RAID.Integrated.1-1")

    def test_missing_identifier_is_a_caller_error(self):
        for record in (ComponentRecord(name="PERC H730P Mini"), {"Id": "RAID.1"}, {}):
            with self.assertRaises(MissingIdentifierError) as ctx:
                extract_identifier(record)
            self.assertIsInstance(ctx.exception, ValueError)
            self.assertNotIsInstance(ctx.exception, RadfishError)

    def test_none_is_rejected(self):
        with self.assertRaisesRegex(MissingIdentifierError, "Controller required"):
            extract_identifier(None)


class DrivesForVolumeTests(unittest.TestCase):
    def setUp(self):
        self.drives = [
            {"id": f"Disk.Bay.{n}", "odata_id": f"/redfish/v1/Drive/{n}"}
            for n in (1, 2, 3)
        ]

    def test_referenced_drives_are_selected(self):
        volume = {"drives": [{"@odata.id": "/redfish/v1/Drive/1"}, {"@odata.id": "/redfish/v1/Drive/3"}]}

        matched = drives_for_volume(volume, self.drives)

        self.assertEqual([drive["id"] for drive in matched], ["Disk.Bay.1", "Disk.Bay.3"])

    def test_plain_string_references(self):
        volume = {"Links": {"Drives": ["/redfish/v1/Drive/2"]}}

        matched = drives_for_volume(volume, self.drives)

        self.assertEqual([drive["id"] for drive in matched], ["Disk.Bay.2"])

    def test_normalized_volume_and_drive_records(self):
        volume = normalize(
            {"id": "Disk.Virtual.0", "drives": [{"@odata.id": "/redfish/v1/Drive/3"}]},
            VolumeRecord,
        )
        drives = [normalize(drive) for drive in self.drives]

        matched = drives_for_volume(volume, drives)

        self.assertEqual([drive.id for drive in matched], ["Disk.Bay.3"])

    def test_drive_matched_on_native_reference(self):
        drives = [{"Id": "Disk.Bay.4", "@odata.id": "/redfish/v1/Drive/4"}]
        volume = {"drives": [{"odata_id": "/redfish/v1/Drive/4"}]}

        self.assertEqual(drives_for_volume(volume, drives), drives)

    def test_no_references_yields_empty_list(self):
        self.assertEqual(drives_for_volume({"id": "Disk.Virtual.0"}, self.drives), [])
        self.assertEqual(drives_for_volume({"drives": [{"Name": "no ref"}]}, self.drives), [])

    def test_unmatched_references_yield_empty_list(self):
        volume = {"drives": [{"@odata.id": "/redfish/v1/Drive/9"}]}

        self.assertEqual(drives_for_volume(volume, self.drives), [])

    def test_volume_drive_refs_skips_empty_entries(self):
        volume = {"drives": [{"@odata.id": "/a"}, {}, "", "/b"]}

        self.assertEqual(volume_drive_refs(volume), ["/a", "/b"])

    def test_drive_identities_collects_all_variants(self):
        identities = drive_identities({"odata_id": "/a", "@odata.id": "/b"})

        self.assertEqual(identities, {"/a", "/b"})


if __name__ == "__main__":
    unittest.main()
