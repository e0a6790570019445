from .common import InvalidArgument
from .query import do_list, do_get, ListArgs, GetArgs
from .modify import do_put, do_remove, PutArgs, RemoveArgs
from .transfer import do_dump, do_upload, do_tar, do_zip, DumpArgs, UploadArgs, TarArgs, ZipArgs, TransferContext
