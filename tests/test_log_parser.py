import unittest
import tempfile
import shutil
from pathlib import Path
from datetime import datetime

import numpy as np

# Adjust path to import the actual classes
import sys
src_path = str(Path(__file__).parent.parent / 'src')
if src_path not in sys.path:
    sys.path.append(src_path)

from sweep_spectrogram.errors import FormatError, FormatErrorKind
from sweep_spectrogram.log_parser import LogParser, parse_log, serialize_log, write_log, parse_log_file

EXAMPLE_LOG = "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n"


def make_record_text(start_time, end_time, samples, header="1.0,30.0,3,10.0"):
    lines = [f"$ {header},{start_time},{end_time}"]
    lines += [str(s) for s in samples]
    lines.append("")
    return "\n".join(lines) + "\n"


class TestLogParser(unittest.TestCase):

    def assertFormatError(self, text, kind, line_number=None):
        with self.assertRaises(FormatError) as ctx:
            parse_log(text)
        self.assertEqual(ctx.exception.kind, kind, str(ctx.exception))
        if line_number is not None:
            self.assertEqual(ctx.exception.line_number, line_number)
        return ctx.exception

    def test_example_log(self):
        document = parse_log(EXAMPLE_LOG)

        self.assertEqual(document.record_count, 1)
        record = document.records[0]
        self.assertEqual(record.steps, 3)
        self.assertEqual(record.start_freq_mhz, 1.0)
        self.assertEqual(record.stop_freq_mhz, 30.0)
        self.assertEqual(record.rbw_khz, 10.0)
        self.assertEqual(record.start_time, datetime(2023, 1, 1, 0, 0, 0))
        self.assertEqual(record.end_time, datetime(2023, 1, 1, 0, 0, 10))
        np.testing.assert_array_equal(document.samples, np.array([-50, -60, -70], dtype=np.float32))
        self.assertEqual(document.samples.dtype, np.float32)

    def test_sample_count_matches_records(self):
        text = (make_record_text("20230101T000000", "20230101T000005", [-50, -51, -52]) +
                make_record_text("20230101T000010", "20230101T000015", [-60, -61, -62]) +
                make_record_text("20230101T000020", "20230101T000025", [-70, -71, -72]))
        document = parse_log(text)

        self.assertEqual(document.record_count, 3)
        self.assertEqual(len(document.samples), document.record_count * document.records[0].steps)
        self.assertEqual(float(document.sample_matrix()[1, 2]), -62.0)

    def test_comments_are_skipped_anywhere(self):
        text = ("# start of log\n"
                "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n"
                "-50\n"
                "# in the middle of a record\n"
                "-60\n"
                "-70\n"
                "\n"
                "# trailing comment\n")
        document = parse_log(text)
        self.assertEqual(list(document.samples), [-50.0, -60.0, -70.0])

    def test_bytes_and_crlf_input(self):
        document = parse_log(EXAMPLE_LOG.replace("\n", "\r\n").encode('ascii'))
        self.assertEqual(document.steps, 3)

    def test_non_ascii_comment_bytes_are_skipped(self):
        data = ("# Station: Zürich rooftop\n" + EXAMPLE_LOG).encode('utf-8')
        document = parse_log(data)
        self.assertEqual(list(document.samples), [-50.0, -60.0, -70.0])

    def test_non_ascii_bytes_outside_comments_rejected(self):
        header = "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n"
        error = self.assertFormatError(("$ 1.0,30.0,3,10.0,2023µ\n").encode('utf-8'),
                                       FormatErrorKind.MALFORMED_HEADER, line_number=1)
        self.assertIn('0xc2', str(error))
        self.assertFormatError((header + "-50\n-6µ\n-70\n\n").encode('utf-8'),
                               FormatErrorKind.INVALID_SAMPLE, line_number=3)
        self.assertFormatError((header + "-50\n-60\n-70\nµ\n").encode('utf-8'),
                               FormatErrorKind.MISSING_BLANK_LINE, line_number=5)

    def test_iterable_of_lines(self):
        document = parse_log(EXAMPLE_LOG.splitlines(keepends=True))
        self.assertEqual(document.record_count, 1)

    def test_start_not_below_stop_rejected(self):
        err = self.assertFormatError(
            "$ 30.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n",
            FormatErrorKind.INVALID_HEADER_VALUE, line_number=1)
        self.assertEqual(err.context['field'], 'start_freq')
        self.assertFormatError(
            "$ 31.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n",
            FormatErrorKind.INVALID_HEADER_VALUE)

    def test_zero_steps_rejected(self):
        self.assertFormatError(
            "$ 1.0,30.0,0,10.0,20230101T000000,20230101T000010\n\n",
            FormatErrorKind.INVALID_HEADER_VALUE, line_number=1)

    def test_rbw_bounds(self):
        self.assertFormatError(
            "$ 1.0,30.0,3,0.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n",
            FormatErrorKind.INVALID_HEADER_VALUE)
        self.assertFormatError(
            "$ 1.0,30.0,3,1000.5,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n",
            FormatErrorKind.INVALID_HEADER_VALUE)
        document = parse_log("$ 1.0,30.0,3,1000.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n")
        self.assertEqual(document.first.rbw_khz, 1000.0)

    def test_malformed_header(self):
        self.assertFormatError(
            "$ 1.0,30.0,3,20230101T000000,20230101T000010\n",
            FormatErrorKind.MALFORMED_HEADER, line_number=1)
        self.assertFormatError(
            "$ 1.0,abc,3,10.0,20230101T000000,20230101T000010\n",
            FormatErrorKind.INVALID_HEADER_VALUE, line_number=1)
        self.assertFormatError(
            "$ 1.0,30.0,3,10.0,2023-01-01,20230101T000010\n",
            FormatErrorKind.INVALID_HEADER_VALUE, line_number=1)

    def test_non_finite_samples_rejected(self):
        for token in ('nan', 'inf', '-inf', 'NaN', '1e39'):
            with self.subTest(token=token):
                text = f"$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n{token}\n-70\n\n"
                self.assertFormatError(text, FormatErrorKind.NON_FINITE_SAMPLE, line_number=3)

    def test_invalid_samples_rejected(self):
        for token in ('abc', '1_0', ' -50', '0x10', '-50 dBm'):
            with self.subTest(token=token):
                text = f"$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n{token}\n\n"
                self.assertFormatError(text, FormatErrorKind.INVALID_SAMPLE, line_number=4)

    def test_header_mismatch_names_field(self):
        text = (make_record_text("20230101T000000", "20230101T000005", [-50, -51, -52]) +
                make_record_text("20230101T000010", "20230101T000015", [-60, -61, -62],
                                 header="1.0,30.0,3,20.0"))
        err = self.assertFormatError(text, FormatErrorKind.HEADER_MISMATCH, line_number=6)
        self.assertEqual(err.context['field'], 'rbw_khz')
        self.assertEqual(err.context['expected'], 10.0)
        self.assertEqual(err.context['actual'], 20.0)

    def test_header_mismatch_is_exact(self):
        text = (make_record_text("20230101T000000", "20230101T000005", [-50, -51, -52],
                                 header="1.0,30.0,3,10.0") +
                make_record_text("20230101T000010", "20230101T000015", [-60, -61, -62],
                                 header="1.0000001,30.0,3,10.0"))
        err = self.assertFormatError(text, FormatErrorKind.HEADER_MISMATCH)
        self.assertEqual(err.context['field'], 'start_freq_mhz')

    def test_equal_values_in_different_spelling_match(self):
        text = (make_record_text("20230101T000000", "20230101T000005", [-50, -51, -52],
                                 header="1.0,30.0,3,10.0") +
                make_record_text("20230101T000010", "20230101T000015", [-60, -61, -62],
                                 header="1.000000,30.000000,3,10.000"))
        self.assertEqual(parse_log(text).record_count, 2)

    def test_missing_blank_line(self):
        text = "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n-80\n"
        self.assertFormatError(text, FormatErrorKind.MISSING_BLANK_LINE, line_number=5)

    def test_record_ending_early(self):
        text = "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n\n"
        err = self.assertFormatError(text, FormatErrorKind.UNEXPECTED_LINE, line_number=4)
        self.assertEqual(err.context['samples'], 2)

    def test_data_before_header(self):
        self.assertFormatError("-50\n", FormatErrorKind.UNEXPECTED_LINE, line_number=1)

    def test_truncated_stream(self):
        self.assertFormatError(
            "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n",
            FormatErrorKind.TRUNCATED_RECORD)
        # All samples present but no terminating blank line
        self.assertFormatError(
            "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n-60\n-70\n",
            FormatErrorKind.TRUNCATED_RECORD)

    def test_no_records(self):
        err = self.assertFormatError("", FormatErrorKind.NO_RECORDS)
        self.assertIsNone(err.line_number)
        self.assertFormatError("# only a comment\n", FormatErrorKind.NO_RECORDS)

    def test_error_message_has_source_and_line(self):
        with self.assertRaises(FormatError) as ctx:
            LogParser().parse("-50\n", source='sweep.log')
        self.assertTrue(str(ctx.exception).startswith('sweep.log:1: '))

    def test_try_parse(self):
        parser = LogParser()
        outcome = parser.try_parse(EXAMPLE_LOG)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.document.steps, 3)

        outcome = parser.try_parse("$ bad\n")
        self.assertFalse(outcome.ok)
        self.assertIsNone(outcome.document)
        self.assertEqual(outcome.error.kind, FormatErrorKind.MALFORMED_HEADER)

    def test_round_trip(self):
        text = (make_record_text("20230101T000000", "20230101T000005", [-50.25, -51.1, -52.333],
                                 header="433.05,434.79,3,3.3") +
                make_record_text("20230101T000010", "20230101T000015", [-60.0, -119.9, -20.01],
                                 header="433.05,434.79,3,3.3"))
        document = parse_log(text)
        reparsed = parse_log(serialize_log(document))

        self.assertEqual(reparsed.records, document.records)
        np.testing.assert_array_equal(reparsed.samples, document.samples)
        self.assertEqual(reparsed, document)

    def test_serialize_uses_fixed_point_fields(self):
        text = serialize_log(parse_log(EXAMPLE_LOG), comment=False)
        self.assertEqual(
            text,
            "$ 1.000000,30.000000,3,10.000,20230101T000000,20230101T000010\n-50\n-60\n-70\n\n"
        )


class TestLogFiles(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_parse_file_and_write_log(self):
        path = self.test_dir / 'hf.20230101T000000.log'
        path.write_text(EXAMPLE_LOG)
        document = parse_log_file(path)

        copy = write_log(document, self.test_dir / 'copy.log')
        self.assertEqual(parse_log_file(copy), document)

    def test_parse_file_with_utf8_comment(self):
        path = self.test_dir / 'hf.20230101T000000.log'
        path.write_text("# Station: Zürich rooftop\n" + EXAMPLE_LOG, encoding='utf-8')
        document = parse_log_file(path)
        self.assertEqual(document, parse_log(EXAMPLE_LOG))

    def test_directory_concatenates_in_name_order(self):
        (self.test_dir / 'hf.20230101T000010.log').write_text(
            make_record_text("20230101T000010", "20230101T000015", [-60, -61, -62]))
        (self.test_dir / 'hf.20230101T000000.log').write_text(
            make_record_text("20230101T000000", "20230101T000005", [-50, -51, -52]))
        (self.test_dir / 'notes.txt').write_text("not a log\n")

        document = LogParser().parse_directory(self.test_dir)

        self.assertEqual(document.record_count, 2)
        self.assertEqual(document.records[0].start_time, datetime(2023, 1, 1, 0, 0, 0))
        self.assertEqual(list(document.samples), [-50, -51, -52, -60, -61, -62])

    def test_directory_error_names_file(self):
        (self.test_dir / 'a.log').write_text(EXAMPLE_LOG)
        (self.test_dir / 'b.log').write_text(
            "# header comment\n$ 1.0,30.0,3,10.0,20230101T000010,20230101T000020\n-50\nnan\n-70\n\n")

        with self.assertRaises(FormatError) as ctx:
            LogParser().parse_directory(self.test_dir)
        self.assertEqual(ctx.exception.source, 'b.log')
        self.assertEqual(ctx.exception.line_number, 4)

    def test_directory_file_must_end_on_record_boundary(self):
        (self.test_dir / 'a.log').write_text(
            "$ 1.0,30.0,3,10.0,20230101T000000,20230101T000010\n-50\n")
        (self.test_dir / 'b.log').write_text("-60\n-70\n\n")

        with self.assertRaises(FormatError) as ctx:
            LogParser().parse_directory(self.test_dir)
        self.assertEqual(ctx.exception.kind, FormatErrorKind.TRUNCATED_RECORD)
        self.assertEqual(ctx.exception.source, 'a.log')

    def test_empty_directory(self):
        with self.assertRaises(FormatError) as ctx:
            LogParser().parse_directory(self.test_dir)
        self.assertEqual(ctx.exception.kind, FormatErrorKind.NO_RECORDS)


if __name__ == '__main__':
    unittest.main()
