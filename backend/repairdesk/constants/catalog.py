"""Default device and service types offered on the order form.

Tuples are (code, name, description); list order becomes ``sort_order``.
"""

DEFAULT_DEVICE_TYPES = (
    ('laptop', 'Laptop', 'Notebook computers'),
    ('desktop', 'Desktop', 'Desktop and custom-built PCs'),
    ('mobile', 'Mobile phone', 'Smartphones'),
    ('tablet', 'Tablet', 'Tablets and 2-in-1 devices'),
    ('printer', 'Printer', 'Laser, inkjet and ink-tank printers'),
)

DEFAULT_SERVICE_TYPES = (
    ('cleaning', 'Cleaning', 'Dust removal and thermal paste replacement'),
    ('screen_replacement', 'Screen replacement', 'Replace a cracked or faulty display'),
    ('battery_replacement', 'Battery replacement', 'Replace a worn-out battery'),
    ('system_reinstall', 'System reinstall', 'Reinstall the operating system'),
    ('software_install', 'Software install', 'Install and configure software'),
    ('hardware_upgrade', 'Hardware upgrade', 'Memory, storage and other upgrades'),
    ('data_recovery', 'Data recovery', 'Recover data from damaged storage'),
    ('virus_removal', 'Virus removal', 'Malware cleanup'),
)
