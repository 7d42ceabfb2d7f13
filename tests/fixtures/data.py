"""
Shared test data for the integration suites.
"""
import dbwrap as db

PRODUCTS = [
    ('Phone Case', 'accessories'),
    ('phone charger', 'accessories'),
    ('Laptop case', 'cases'),
    ('iPhone case!', 'cases'),
    ('Desk Lamp', None),
    ('Floor Lamp', ''),
    ]


def stage_products(cn, id_column='id INTEGER PRIMARY KEY'):
    """Create and fill the products table with the dialect's id column.
    """
    db.execute(cn, 'drop table if exists products')
    db.execute(cn, f"""
create table products (
    {id_column},
    name varchar(255) not null,
    category varchar(50)
)
""")
    for name, category in PRODUCTS:
        db.execute(cn, 'insert into products (name, category) values (?, ?)',
                   [name, category])
