# Copyright The OpenTelemetry Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import unittest

from opentelemetry.util.dsn.exceptions import DSNSyntaxError
from opentelemetry.util.dsn.postgres import (
    format_keyword_value,
    parse_keyword_value,
)


class TestParseKeywordValue(unittest.TestCase):
    def test_simple_pairs(self):
        self.assertEqual(
            parse_keyword_value("host=localhost port=5432 dbname=mydb"),
            {"host": "localhost", "port": "5432", "database": "mydb"},
        )

    def test_whitespace_around_separators(self):
        self.assertEqual(
            parse_keyword_value(" host = db\n\tport =5433\r\n user=  bob  "),
            {"host": "db", "port": "5433", "user": "bob"},
        )

    def test_quoted_value_keeps_spaces(self):
        self.assertEqual(
            parse_keyword_value("password='my secret' user=bob"),
            {"password": "my secret", "user": "bob"},
        )

    def test_escaped_quote_in_quoted_value(self):
        settings = parse_keyword_value(r"user='o\'brien'")
        self.assertEqual(settings, {"user": "o'brien"})

    def test_escaped_backslash(self):
        self.assertEqual(
            parse_keyword_value(r"sslrootcert=C:\\certs\\root.crt"),
            {"sslrootcert": "C:\\certs\\root.crt"},
        )

    def test_other_escapes_pass_through(self):
        self.assertEqual(
            parse_keyword_value(r"application_name=a\nb options=x\ y"),
            {"application_name": r"a\nb", "options": r"x\ y"},
        )

    def test_empty_values(self):
        self.assertEqual(
            parse_keyword_value("host= "), {"host": ""}
        )
        self.assertEqual(
            parse_keyword_value("password='' user=bob"),
            {"password": "", "user": "bob"},
        )

    def test_escaped_backslash_before_quote(self):
        self.assertEqual(
            parse_keyword_value(r"application_name=x\\'y"),
            {"application_name": r"x\'y"},
        )

    def test_trailing_whitespace(self):
        self.assertEqual(
            parse_keyword_value("host=db port=5432 \t\r\n  "),
            {"host": "db", "port": "5432"},
        )
        self.assertEqual(
            parse_keyword_value("user='bob'  \n"), {"user": "bob"}
        )

    def test_dbname_alias_and_last_wins(self):
        self.assertEqual(
            parse_keyword_value("dbname=first database=second"),
            {"database": "second"},
        )
        self.assertEqual(
            parse_keyword_value("database=first dbname=second"),
            {"database": "second"},
        )

    def test_empty_input(self):
        self.assertEqual(parse_keyword_value(""), {})

    def test_missing_equals(self):
        with self.assertRaisesRegex(DSNSyntaxError, "invalid dsn"):
            parse_keyword_value("host=db port")

    def test_empty_key(self):
        with self.assertRaisesRegex(DSNSyntaxError, "invalid dsn"):
            parse_keyword_value(" =value")

    def test_trailing_backslash(self):
        with self.assertRaisesRegex(DSNSyntaxError, "invalid backslash"):
            parse_keyword_value("host=db\\")

    def test_unterminated_quote(self):
        with self.assertRaisesRegex(DSNSyntaxError, "unterminated quoted"):
            parse_keyword_value("host = 'abc")
        with self.assertRaisesRegex(DSNSyntaxError, "unterminated quoted"):
            parse_keyword_value(r"user='abc\'")


class TestFormatKeywordValue(unittest.TestCase):
    def test_round_trip(self):
        dsns = [
            "host=/tmp port=5432 dbname=mydb",
            r"user='o\'brien' password='p a\\ss' application_name=x\y",
            "options='-c search_path=public' sslmode=require",
            "",
        ]
        for dsn in dsns:
            with self.subTest(dsn=dsn):
                settings = parse_keyword_value(dsn)
                self.assertEqual(
                    parse_keyword_value(format_keyword_value(settings)),
                    settings,
                )

    def test_quotes_and_escapes(self):
        self.assertEqual(
            format_keyword_value({"user": "o'brien", "path": "C:\\x"}),
            r"user='o\'brien' path='C:\\x'",
        )
