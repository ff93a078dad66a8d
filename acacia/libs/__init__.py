from .convert import lib_table as convert_lib_table
from .io import lib_table as io_lib_table
from .reflect import lib_table as reflect_lib_table
from .system import lib_table as system_lib_table
from .set import set_methods
from .string import string_methods

lib_table = {
    **system_lib_table,
    **io_lib_table,
    **convert_lib_table,
    **reflect_lib_table,
}
