from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

from app.core.errors import InvalidGroup
from app.db.crud.invoice_groups import generate_number, preview_number
from app.db.models import InvoiceGroup
from app.db.session import transaction
from conftest import make_engine


def test_generate_number_pads_and_advances(db, refs):
    assert generate_number(db, refs.group_id) == "QUO-0001"
    assert generate_number(db, refs.group_id) == "QUO-0002"
    db.commit()
    assert preview_number(db, refs.group_id) == "QUO-0003"
    assert db.get(InvoiceGroup, refs.group_id, populate_existing=True).next_id == 3


def test_groups_count_independently(db, refs):
    generate_number(db, refs.group_id)
    assert generate_number(db, refs.invoice_group_id) == "INV-100"
    assert generate_number(db, refs.group_id) == "QUO-0002"


def test_year_and_month_prefixes(db):
    group = InvoiceGroup(name="Dated", prefix="Q", next_id=7, left_pad=3, prefix_year=True, prefix_month=True)
    db.add(group)
    db.flush()
    assert generate_number(db, group.id, on=date(2026, 3, 9)) == "Q202603007"


def test_unknown_group(db):
    with pytest.raises(InvalidGroup):
        generate_number(db, 9999)
    with pytest.raises(InvalidGroup):
        preview_number(db, 9999)


def test_rolled_back_allocation_is_not_consumed(db, refs):
    with pytest.raises(RuntimeError):
        with transaction(db):
            generate_number(db, refs.group_id)
            raise RuntimeError("abort")
    assert generate_number(db, refs.group_id) == "QUO-0001"


def test_concurrent_callers_get_distinct_numbers(tmp_path):
    engine = make_engine(
        f"sqlite:///{tmp_path / 'numbers.db'}", begin="BEGIN IMMEDIATE", connect_args={"timeout": 30}
    )
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    with Session() as s, transaction(s):
        group = InvoiceGroup(name="Shared", prefix="", next_id=1, left_pad=6)
        s.add(group)
    group_id = group.id

    def allocate(_):
        with Session() as s, transaction(s):
            return generate_number(s, group_id)

    n = 40
    with ThreadPoolExecutor(max_workers=8) as pool:
        numbers = list(pool.map(allocate, range(n)))

    assert len(set(numbers)) == n
    assert sorted(int(x) for x in numbers) == list(range(1, n + 1))
    with Session() as s:
        assert s.get(InvoiceGroup, group_id).next_id == n + 1
    engine.dispose()
