import unittest

from radfish.errors import (
    BmcConnectionError,
    BusyError,
    ErrorKind,
    GenericOperationError,
    MissingIdentifierError,
    NotFoundError,
    RadfishError,
    TaskTimeoutError,
    classify_message,
    translate_errors,
    translated,
)
from radfish.idrac.errors import IdracError, extract_error_message


class ClassifyMessageTests(unittest.TestCase):
    def test_known_substrings(self):
        self.assertEqual(classify_message("connection refused: no route"), ErrorKind.CONNECTION)
        self.assertEqual(classify_message("BMC 10.0.0.5 unreachable"), ErrorKind.CONNECTION)
        self.assertEqual(classify_message("media already attached"), ErrorKind.BUSY)
        self.assertEqual(classify_message("Account name admin already in use"), ErrorKind.BUSY)
        self.assertEqual(classify_message("GET /redfish/v1/x not found: gone"), ErrorKind.NOT_FOUND)
        self.assertEqual(classify_message("device does not exist"), ErrorKind.NOT_FOUND)
        self.assertEqual(classify_message("request timeout after 30s"), ErrorKind.TIMEOUT)

    def test_unmatched_text_is_generic(self):
        self.assertEqual(classify_message("Internal server error"), ErrorKind.GENERIC)
        self.assertEqual(classify_message(""), ErrorKind.GENERIC)

    def test_matching_is_case_sensitive(self):
        self.assertEqual(classify_message("Connection Refused"), ErrorKind.GENERIC)
        self.assertEqual(classify_message("Not Found"), ErrorKind.GENERIC)

    def test_first_table_entry_wins(self):
        self.assertEqual(classify_message("not found after timeout"), ErrorKind.NOT_FOUND)
        self.assertEqual(classify_message("unreachable: image in use"), ErrorKind.CONNECTION)


class TranslateErrorsTests(unittest.TestCase):
    def test_vendor_error_is_classified(self):
        cases = [
            ("connection refused: no route", BmcConnectionError),
            ("media already attached", BusyError),
            ("device does not exist", NotFoundError),
            ("request timeout after 30s", TaskTimeoutError),
            ("something else went wrong", GenericOperationError),
        ]
        for vendor_message, expected in cases:
            with self.subTest(vendor_message=vendor_message):
                original = IdracError(vendor_message)
                with self.assertRaises(expected) as ctx:
                    with translate_errors("Virtual media insertion", (IdracError,)):
                        raise original

                error = ctx.exception
                self.assertEqual(error.message, f"Virtual media insertion: {vendor_message}")
                self.assertEqual(error.vendor_message, vendor_message)
                self.assertIs(error.__cause__, original)
                self.assertEqual(error.kind, expected.kind)

    def test_unexpected_failure_becomes_generic(self):
        with self.assertRaises(GenericOperationError) as ctx:
            with translate_errors("CPU inventory", (IdracError,)):
                raise KeyError("ProcessorSummary")

        self.assertTrue(ctx.exception.message.startswith("CPU inventory failed: "))
        self.assertIsInstance(ctx.exception.__cause__, KeyError)

    def test_canonical_errors_pass_through(self):
        original = BusyError("Virtual media insertion: in use")

        with self.assertRaises(BusyError) as ctx:
            with translate_errors("Reboot", (IdracError,)):
                raise original

        self.assertIs(ctx.exception, original)

    def test_caller_errors_pass_through(self):
        with self.assertRaises(MissingIdentifierError):
            with translate_errors("List drives", (IdracError,)):
                raise MissingIdentifierError("Controller required")

    def test_decorator_uses_instance_vendor_errors(self):
        class Facade:
            vendor_errors = (IdracError,)

            @translated("Eject")
            def eject(self):
                raise IdracError("slot does not exist")

            @translated("Status")
            def status(self):
                return "On"

        facade = Facade()

        self.assertEqual(facade.status(), "On")
        with self.assertRaises(NotFoundError) as ctx:
            facade.eject()
        self.assertEqual(str(ctx.exception), "Eject: slot does not exist")
        self.assertEqual(Facade.eject.__name__, "eject")

    def test_taxonomy(self):
        for cls in (BmcConnectionError, BusyError, NotFoundError, TaskTimeoutError, GenericOperationError):
            self.assertTrue(issubclass(cls, RadfishError))
        self.assertTrue(issubclass(MissingIdentifierError, ValueError))
        self.assertFalse(issubclass(MissingIdentifierError, RadfishError))


class ExtractErrorMessageTests(unittest.TestCase):
    def test_extended_info_message(self):
        body = {
            "error": {
                "@Message.ExtendedInfo": [
                    {"Message": "Unable to complete the operation.", "MessageId": "IDRAC.2.8.SYS446"}
                ]
            }
        }

        self.assertEqual(extract_error_message(body), "Unable to complete the operation. (SYS446)")

    def test_direct_error_message(self):
        self.assertEqual(extract_error_message({"error": {"message": "Bad request"}}), "Bad request")

    def test_unrecognized_bodies(self):
        self.assertIsNone(extract_error_message({"raw_response": "<html/>"}))
        self.assertIsNone(extract_error_message(None))


if __name__ == "__main__":
    unittest.main()
