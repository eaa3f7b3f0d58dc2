"""Local JSON storage for customer records and their files."""

import json
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import AttachedFile, Customer
from .utils import ensure_directory_exists, storage_safe_name


CUSTOMERS_FILE = "customers.json"
FILES_DIR = "customer_files"


class StoreError(Exception):
    """Raised when the customer store cannot be written."""


def normalize_name(name: str) -> str:
    """Key used for duplicate detection."""
    return name.lower().strip()


def file_url(path: str) -> str:
    """file:// URL as stored in customer records."""
    return "file://" + path.replace("\\", "/")


class CustomerStore:
    """Flat list of customer records kept in a JSON file."""

    def __init__(self, data_dir: str):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding customers.json and the files folder
        """
        self.data_dir = data_dir
        self.data_file = os.path.join(data_dir, CUSTOMERS_FILE)
        self.files_dir = os.path.join(data_dir, FILES_DIR)
        ensure_directory_exists(self.files_dir)

    def load_customers(self) -> list[Customer]:
        """
        Load all customer records.

        Returns:
            Customers in file order, empty if the file is missing or unreadable
        """
        if not os.path.exists(self.data_file):
            return []

        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [Customer.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
            logging.error(f"Error loading customers from {self.data_file}: {e}")
            return []

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Find a customer by ID."""
        return next((c for c in self.load_customers() if c.id == customer_id), None)

    def save_customer(self, customer: Customer) -> None:
        """
        Add a customer or update an existing one with the same ID.

        Fields of the given record override those of the stored record;
        stored fields it does not carry are kept.

        Raises:
            StoreError: If the data file cannot be written
        """
        customers = self.load_customers()
        index = next((i for i, c in enumerate(customers) if c.id == customer.id), None)

        if index is not None:
            merged = customers[index].model_dump(by_alias=True)
            merged.update(customer.model_dump(by_alias=True, exclude_unset=True))
            customers[index] = Customer.model_validate(merged)
            logging.info(f"Updated customer '{customers[index].name}' ({customer.id})")
        else:
            customers.append(customer)
            logging.info(f"Added customer '{customer.name}' ({customer.id})")

        self._write(customers)

    def delete_customer(self, customer_id: str) -> bool:
        """
        Remove a customer.

        Returns:
            False if there is no data file yet, True otherwise

        Raises:
            StoreError: If the data file cannot be written
        """
        if not os.path.exists(self.data_file):
            return False

        customers = [c for c in self.load_customers() if c.id != customer_id]
        self._write(customers)
        logging.info(f"Deleted customer {customer_id}")
        return True

    def existing_names(self) -> set[str]:
        """Normalized names of all stored customers."""
        return {normalize_name(c.name) for c in self.load_customers()}

    def find_duplicate(self, name: str) -> Optional[Customer]:
        """Stored customer whose name matches case-insensitively, if any."""
        key = normalize_name(name)
        return next((c for c in self.load_customers() if normalize_name(c.name) == key), None)

    def save_file(self, name: str, data: bytes, mime_type: str = "") -> AttachedFile:
        """
        Store file content in the files directory.

        Raises:
            StoreError: If the file cannot be written
        """
        destination = self._unique_path(name)
        try:
            Path(destination).write_bytes(data)
        except OSError as e:
            raise StoreError(f"Could not save file {name}: {e}") from e
        return AttachedFile(name=name, url=file_url(destination), type=mime_type)

    def copy_file_to_storage(self, source_path: str, name: str, mime_type: str = "application/pdf") -> AttachedFile:
        """
        Copy an existing file into the files directory.

        Raises:
            StoreError: If the file cannot be copied
        """
        destination = self._unique_path(name)
        try:
            shutil.copyfile(source_path, destination)
        except OSError as e:
            raise StoreError(f"Could not copy {source_path} to storage: {e}") from e
        logging.info(f"Copied {name} to {destination}")
        return AttachedFile(name=name, url=file_url(destination), type=mime_type)

    def _unique_path(self, name: str) -> str:
        timestamp = int(time.time() * 1000)
        path = os.path.join(self.files_dir, f"{timestamp}_{storage_safe_name(name)}")
        while os.path.exists(path):
            timestamp += 1
            path = os.path.join(self.files_dir, f"{timestamp}_{storage_safe_name(name)}")
        return path

    def _write(self, customers: list[Customer]) -> None:
        data = [c.model_dump(by_alias=True) for c in customers]
        tmp_file = self.data_file + ".tmp"
        try:
            with open(tmp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_file, self.data_file)
        except OSError as e:
            raise StoreError(f"Could not write {self.data_file}: {e}") from e
