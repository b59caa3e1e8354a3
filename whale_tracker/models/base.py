from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase

# Token amounts are stored exactly but handled as floats by the analytics code.
Balance = Numeric(38, 8, asdecimal=False)


class Base(DeclarativeBase):
    pass
