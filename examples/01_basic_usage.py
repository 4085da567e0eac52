"""
Basic usage examples for cloud-uploader.

This example demonstrates the fundamental operations against a COS bucket:
- Creating an uploader
- Uploading and downloading objects
- Paging through a listing
- Expanding a directory tree
- Cleaning up a prefix
"""
import logging
import os
from io import BytesIO

from cloud_uploader import get_uploader, CosPutOptions


def build_uploader():
    config = {
        'bucket_name': os.environ.get('COS_BUCKET', 'examplebucket-1250000000'),
        'region': os.environ.get('COS_REGION', 'ap-guangzhou'),
    }
    credentials = {
        'secret_id': os.environ.get('COS_SECRET_ID', ''),
        'secret_key': os.environ.get('COS_SECRET_KEY', ''),
    }
    return get_uploader('cos', config, credentials)


def example_transfer(uploader):
    """Example: put, get, copy and move."""
    print("\n=== TRANSFER EXAMPLE ===")

    uploader.put('demo/hello.txt', BytesIO(b"Hello, COS!"), CosPutOptions(content_type='text/plain'))
    print("✓ Uploaded demo/hello.txt")

    print(f"✓ Downloaded content: {uploader.get('demo/hello.txt').decode()}")

    uploader.copy('demo/copy.txt', 'demo/hello.txt')
    uploader.move('demo/moved.txt', 'demo/copy.txt')
    print(f"✓ Moved copy exists: {uploader.exists('demo/moved.txt')}")

    position = uploader.append_string('demo/log.txt', 0, "first line\n")
    uploader.append_string('demo/log.txt', position, "second line\n")
    print("✓ Appended to demo/log.txt")


def example_listing(uploader):
    """Example: page through a prefix and print a tree."""
    print("\n=== LISTING EXAMPLE ===")

    cursor = ''
    while True:
        records, cursor = uploader.list_objects('demo/', cursor, limit=2)
        for record in records:
            print(f"  {record.file_type:4} {record.path}")
        if not cursor:
            break

    print(f"✓ Files under demo/: {uploader.count('demo/', files_only=True)}")

    def show(nodes, indent=0):
        for node in nodes:
            print(f"{'  ' * indent}- {node.params['filename']}")
            show(node.children, indent + 1)

    show(uploader.tree('', max_depth=2, count_children=True))


def example_cleanup(uploader):
    """Example: best-effort recursive delete."""
    print("\n=== CLEANUP EXAMPLE ===")

    result = uploader.delete_all('demo/')
    print(f"✓ Deleted {result.deleted} objects, {result.failed} failures")


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    uploader = build_uploader()
    if uploader.test_connection():
        print("✓ Connection successful")
        example_transfer(uploader)
        example_listing(uploader)
        example_cleanup(uploader)
