"""Tests for CSV and workbook export."""

from io import BytesIO

from openpyxl import load_workbook

from school_portal.services.export import export_filename, to_delimited_text, to_workbook


def test_n_records_give_n_plus_one_lines(students):
    text = to_delimited_text(students)
    lines = text.split("\n")

    assert len(lines) == len(students) + 1
    columns = len(lines[0].split(","))
    assert all(len(line.split(",")) == columns for line in lines)
    assert lines[0].startswith("id,admissionNo,name,gender,grade,stream")
    assert lines[1].startswith("s1,ADM001,Amina Otieno,,Grade 4,East")


def test_header_comes_from_first_record():
    records = [
        {"a": 1, "b": 2},
        {"b": 3, "c": 4},
    ]
    assert to_delimited_text(records) == "a,b\n1,2\n,3"
    assert to_delimited_text(records, union_keys=True) == "a,b,c\n1,2,\n,3,4"


def test_values_are_not_quoted_by_default():
    records = [{"name": "Kamau, Brian", "note": 'said "hi"'}]
    assert to_delimited_text(records) == 'name,note\nKamau, Brian,said "hi"'
    assert to_delimited_text(records, quote=True) == 'name,note\n"Kamau, Brian","said ""hi"""'


def test_empty_export():
    assert to_delimited_text([]) == ""


def test_export_filename():
    assert export_filename("students") == "students.csv"
    assert export_filename("payments", "xlsx") == "payments.xlsx"


def test_workbook_export(students):
    content = to_workbook(students, title="students")
    ws = load_workbook(BytesIO(content)).active

    assert ws.title == "students"
    assert ws.cell(row=1, column=2).value == "admissionNo"
    assert ws.cell(row=2, column=3).value == "Amina Otieno"
    assert ws.max_row == len(students) + 1
