from ofs_plugin.launcher import main

main()
